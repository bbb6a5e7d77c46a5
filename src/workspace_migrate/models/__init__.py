"""Data models for migration entities."""

from .identity import Identity
from .workspace import Workspace, WorkspaceCreate
from .project import Project, SubResource, SubResourceKind
from .relocation import RelocationRecord, RelocationStatus
from .report import (
    IdentityOutcome,
    IdentityState,
    MigrationReport,
    ResourceOutcome,
    ResourceStatus,
    Sweep,
)

__all__ = [
    'Identity',
    'Workspace',
    'WorkspaceCreate',
    'Project',
    'SubResource',
    'SubResourceKind',
    'RelocationRecord',
    'RelocationStatus',
    'IdentityOutcome',
    'IdentityState',
    'MigrationReport',
    'ResourceOutcome',
    'ResourceStatus',
    'Sweep',
]
