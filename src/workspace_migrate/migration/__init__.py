"""Migration engine, orchestrator and blob relocation."""

from .relocation import (
    ArtifactRule,
    BlobRelocator,
    DEFAULT_RULES,
    canonical_key,
    legacy_key,
)
from .orchestrator import MigrationContext, MigrationOrchestrator
from .engine import MigrationEngine

__all__ = [
    'ArtifactRule',
    'BlobRelocator',
    'DEFAULT_RULES',
    'canonical_key',
    'legacy_key',
    'MigrationContext',
    'MigrationOrchestrator',
    'MigrationEngine',
]
