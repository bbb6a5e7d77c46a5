"""Blob relocation audit records."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RelocationStatus(str, Enum):
    """Outcome of relocating one artifact."""

    MIGRATED = 'migrated'
    SKIPPED_EXISTS = 'skipped-exists'
    SKIPPED_MISSING = 'skipped-missing'
    FAILED = 'failed'


class RelocationRecord(BaseModel):
    """One entry of the relocation audit trail."""

    model_config = ConfigDict(frozen=True)

    old_key: str = Field(..., description='Legacy object key')
    new_key: str = Field(..., description='Canonical object key')
    status: RelocationStatus = Field(..., description='Relocation outcome')

    resource_id: Optional[str] = Field(default=None, description='Project id')
    kind: Optional[str] = Field(default=None, description='branch or version')
    local_id: Optional[str] = Field(default=None, description='Branch id or version')
    artifact: Optional[str] = Field(default=None, description='Artifact rule name')
    error: Optional[str] = Field(default=None, description='Failure detail')
    dry_run: bool = Field(default=False, description='No write was performed')
