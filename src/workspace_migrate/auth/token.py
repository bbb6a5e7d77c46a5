"""Per-identity bearer credentials."""

from typing import Optional, Protocol

import requests
from firebase_admin import auth as firebase_auth
from loguru import logger

from ..api.exceptions import AuthError
from ..config.config import AuthConfig


class AssertionSigner(Protocol):
    """Mints a short-lived signed assertion for an identity."""

    def mint_assertion(self, identity_id: str) -> str:
        ...


class FirebaseAssertionSigner:
    """Custom-token signer backed by a Firebase app."""

    def __init__(self, app):
        self.app = app

    def mint_assertion(self, identity_id: str) -> str:
        token = firebase_auth.create_custom_token(identity_id, app=self.app)
        return token.decode('utf-8') if isinstance(token, bytes) else token


class TokenProvider:
    """Exchanges an identity for a bearer credential usable against the API."""

    def __init__(
        self,
        config: AuthConfig,
        signer: AssertionSigner,
        session: Optional[requests.Session] = None,
    ):
        """Initialize token provider.

        Args:
            config: Auth configuration (API key, exchange endpoint)
            signer: Assertion signer
            session: Optional HTTP session for the exchange call
        """
        self.config = config
        self.signer = signer
        self.session = session or requests.Session()
        self.logger = logger.bind(component='TokenProvider')

    def get_token(self, identity_id: str) -> str:
        """Return ``Bearer <idToken>`` for the identity.

        Raises:
            AuthError: If minting or exchanging fails
        """
        try:
            assertion = self.signer.mint_assertion(identity_id)
        except AuthError:
            raise
        except Exception as e:
            raise AuthError(f'Could not mint assertion for {identity_id}: {e}')

        return f'Bearer {self.exchange(assertion, identity_id)}'

    def exchange(self, assertion: str, identity_id: str = '') -> str:
        """Exchange a signed assertion for an ID token."""
        if not self.config.api_key:
            raise AuthError('No API key configured for the token exchange')

        try:
            response = self.session.post(
                self.config.exchange_url,
                params={'key': self.config.api_key},
                json={'token': assertion, 'returnSecureToken': True},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise AuthError(f'Token exchange for {identity_id} failed: {e}')

        if response.status_code >= 400:
            try:
                detail = response.json().get('error', {}).get('message')
            except (ValueError, AttributeError):
                detail = None
            raise AuthError(
                f'Token exchange for {identity_id} rejected: '
                f'{detail or "HTTP " + str(response.status_code)}',
                status_code=response.status_code,
            )

        try:
            id_token = response.json().get('idToken')
        except (ValueError, AttributeError):
            id_token = None
        if not id_token:
            raise AuthError(f'Token exchange for {identity_id} returned no idToken')

        self.logger.debug(f'Issued bearer token for {identity_id}')
        return id_token

    def close(self):
        self.session.close()
