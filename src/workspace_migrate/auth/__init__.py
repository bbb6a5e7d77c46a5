"""Identity credential issuance."""

from .token import AssertionSigner, FirebaseAssertionSigner, TokenProvider

__all__ = ['AssertionSigner', 'FirebaseAssertionSigner', 'TokenProvider']
