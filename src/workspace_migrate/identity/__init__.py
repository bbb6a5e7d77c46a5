"""Identity enumeration."""

from .source import FirebaseIdentityProvider, IdentityProvider, IdentitySource

__all__ = ['FirebaseIdentityProvider', 'IdentityProvider', 'IdentitySource']
