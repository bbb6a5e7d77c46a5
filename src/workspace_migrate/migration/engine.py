"""Migration engine - main entry point for migration operations."""

from typing import Optional

from loguru import logger

from ..api.client import ResourceClient
from ..api.pacing import RequestPacer
from ..auth.firebase import create_firebase_app
from ..auth.token import FirebaseAssertionSigner, TokenProvider
from ..config.config import Config
from ..identity.source import FirebaseIdentityProvider, IdentitySource
from ..models.report import MigrationReport
from ..storage.blob_store import S3BlobStore
from .orchestrator import MigrationContext, MigrationOrchestrator
from .relocation import BlobRelocator


class MigrationEngine:
    """Builds every collaborator from configuration and runs the orchestrator."""

    def __init__(self, config: Config, app=None, blob_store=None):
        """Initialize migration engine.

        Args:
            config: Migration configuration
            app: Optional preinitialised Firebase app
            blob_store: Optional blob store replacing the S3 one
        """
        self.config = config
        self.logger = logger.bind(component='MigrationEngine')

        self.app = app or create_firebase_app(config.auth)
        self.token_provider = TokenProvider(
            config.auth, FirebaseAssertionSigner(self.app)
        )
        self.resource_client = ResourceClient(config.api)

        relocator = None
        if config.migration.relocate_artifacts:
            if blob_store is None:
                blob_store = S3BlobStore(config.storage)
            relocator = BlobRelocator(
                blob_store,
                legacy_root=config.storage.legacy_root,
                new_root=config.storage.target_root,
                dry_run=config.migration.dry_run,
            )
        self.blob_store = blob_store

        self.context = MigrationContext(
            identity_source=IdentitySource(
                FirebaseIdentityProvider(self.app),
                page_size=config.migration.page_size,
            ),
            token_provider=self.token_provider,
            resource_client=self.resource_client,
            relocator=relocator,
            pacer=RequestPacer(config.migration.pacing_delay),
            identity_limit=config.migration.identity_limit,
            default_workspace_name=config.migration.default_workspace_name,
            migrate_ownership=config.migration.migrate_ownership,
            relocate_artifacts=config.migration.relocate_artifacts,
            dry_run=config.migration.dry_run,
        )
        self.orchestrator = MigrationOrchestrator(self.context)

    def migrate(self) -> MigrationReport:
        """Execute the migration.

        Raises:
            IdentityEnumerationError: If identities cannot be listed
        """
        mode = 'dry run' if self.config.migration.dry_run else 'migration'
        self.logger.info(f'Starting workspace {mode}')

        try:
            report = self.orchestrator.run()
            self.logger.info(f'Workspace {mode} completed')
            return report
        except Exception as e:
            self.logger.error(f'Workspace {mode} failed: {e}')
            raise
        finally:
            self.close()

    def cancel(self) -> None:
        self.orchestrator.cancel()

    def test_connectivity(self) -> Optional[str]:
        """Check the storage bucket is reachable.

        Returns:
            None when everything is reachable, otherwise a description
        """
        if self.blob_store is not None and hasattr(self.blob_store, 'test_connection'):
            if not self.blob_store.test_connection():
                return f'Cannot access bucket {self.config.storage.bucket}'
        return None

    def close(self) -> None:
        self.resource_client.close()
        self.token_provider.close()
