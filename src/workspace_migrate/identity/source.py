"""Paginated identity enumeration."""

from typing import List, Optional, Protocol, Tuple

from firebase_admin import auth as firebase_auth
from loguru import logger

from ..api.exceptions import IdentityEnumerationError
from ..models.identity import Identity

Page = Tuple[List[Identity], Optional[str]]


class IdentityProvider(Protocol):
    """Backing provider of identity pages."""

    def list_page(self, page_size: int, cursor: Optional[str] = None) -> Page:
        ...


class FirebaseIdentityProvider:
    """Lists Firebase Authentication users."""

    def __init__(self, app):
        self.app = app

    def list_page(self, page_size: int, cursor: Optional[str] = None) -> Page:
        page = firebase_auth.list_users(
            page_token=cursor, max_results=page_size, app=self.app
        )
        identities = [
            Identity(id=user.uid, display_name=user.display_name, email=user.email)
            for user in page.users
        ]
        return identities, page.next_page_token or None


class IdentitySource:
    """Produces the full, deduplicated list of identities to migrate."""

    def __init__(self, provider: IdentityProvider, page_size: int = 1000):
        self.provider = provider
        self.page_size = page_size
        self.logger = logger.bind(component='IdentitySource')

    def list_all(self) -> List[Identity]:
        """Page through the provider until it returns no cursor.

        Identities repeated across pages are kept once, in first-seen order.

        Raises:
            IdentityEnumerationError: If any page cannot be fetched
        """
        seen = {}
        cursor = None
        pages = 0

        while True:
            try:
                identities, cursor = self.provider.list_page(self.page_size, cursor)
            except Exception as e:
                raise IdentityEnumerationError(
                    f'Failed to list identities after {pages} pages: {e}'
                ) from e
            pages += 1

            for identity in identities:
                if identity.id in seen:
                    self.logger.debug(f'Duplicate identity {identity.id} on page {pages}')
                    continue
                seen[identity.id] = identity

            if not cursor:
                break

        self.logger.info(f'Enumerated {len(seen)} identities over {pages} pages')
        return list(seen.values())
