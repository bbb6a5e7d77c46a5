"""Per-unit outcomes and the run report."""

import json
from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .relocation import RelocationRecord, RelocationStatus


class Sweep(str, Enum):
    """The two independent passes over the identity list."""

    OWNERSHIP = 'ownership'
    ARTIFACTS = 'artifacts'


class IdentityState(str, Enum):
    """Per-identity state machine."""

    START = 'start'
    CONTAINER_RESOLVED = 'container_resolved'
    RESOURCES_LISTED = 'resources_listed'
    RESOURCES_UPDATED = 'resources_updated'
    DONE = 'done'
    FAILED = 'failed'


class ResourceStatus(str, Enum):
    """Outcome of re-parenting one project."""

    UPDATED = 'updated'
    FAILED = 'failed'
    PLANNED = 'planned'


class ResourceOutcome(BaseModel):
    """Result of updating one project's owner."""

    resource_id: str = Field(..., description='Project id')
    status: ResourceStatus = Field(..., description='Update outcome')
    target_owner_id: Optional[str] = Field(default=None, description='Workspace id')
    error: Optional[str] = Field(default=None, description='Error message if failed')


class IdentityOutcome(BaseModel):
    """Result of one sweep over one identity."""

    identity_id: str = Field(..., description='Identity id')
    sweep: Sweep = Field(..., description='Sweep that produced this outcome')
    state: IdentityState = Field(default=IdentityState.START)

    workspace_id: Optional[str] = Field(default=None)
    workspace_created: bool = Field(default=False)
    resources: List[ResourceOutcome] = Field(default_factory=list)

    warnings: List[str] = Field(default_factory=list, description='Warning messages')
    error: Optional[str] = Field(default=None, description='Error message if failed')

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = Field(default=None)

    @property
    def failed(self) -> bool:
        return self.state == IdentityState.FAILED

    def advance(self, state: IdentityState) -> None:
        self.state = state
        if state in (IdentityState.DONE, IdentityState.FAILED):
            self.completed_at = datetime.now()

    def fail(self, error: Exception) -> None:
        self.error = f'{type(error).__name__}: {error}'
        self.advance(IdentityState.FAILED)


class MigrationReport(BaseModel):
    """Reconciliation report of one run.

    Append-only; owned by the orchestrator.
    """

    identities_total: int = Field(default=0, description='Identities enumerated')
    identities_skipped: int = Field(
        default=0, description='Identities beyond the rollout limit'
    )
    dry_run: bool = Field(default=False)
    cancelled: bool = Field(default=False)

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = Field(default=None)

    identity_outcomes: List[IdentityOutcome] = Field(default_factory=list)
    relocations: List[RelocationRecord] = Field(default_factory=list)

    def outcomes_for(self, sweep: Sweep) -> List[IdentityOutcome]:
        return [o for o in self.identity_outcomes if o.sweep == sweep]

    @property
    def identities_processed(self) -> int:
        """Identities that reached Done in every sweep they entered."""
        ids = {o.identity_id for o in self.identity_outcomes}
        return len(ids - self._failed_identity_ids())

    @property
    def identities_failed(self) -> int:
        return len(self._failed_identity_ids())

    def _failed_identity_ids(self) -> set:
        return {o.identity_id for o in self.identity_outcomes if o.failed}

    @property
    def resources_updated(self) -> int:
        return self._count_resources(ResourceStatus.UPDATED)

    @property
    def resources_failed(self) -> int:
        return self._count_resources(ResourceStatus.FAILED)

    @property
    def resources_planned(self) -> int:
        return self._count_resources(ResourceStatus.PLANNED)

    def _count_resources(self, status: ResourceStatus) -> int:
        return sum(
            1
            for outcome in self.outcomes_for(Sweep.OWNERSHIP)
            for resource in outcome.resources
            if resource.status == status
        )

    def relocation_counts(self) -> Dict[str, int]:
        counts = Counter(record.status for record in self.relocations)
        return {status.value: counts.get(status, 0) for status in RelocationStatus}

    def results_by_sweep(self) -> Dict[str, Dict[str, int]]:
        """Identity counts grouped by sweep."""
        summary = {}
        for sweep in Sweep:
            outcomes = self.outcomes_for(sweep)
            if not outcomes:
                continue
            failed = sum(1 for o in outcomes if o.failed)
            summary[sweep.value] = {
                'total': len(outcomes),
                'successful': len(outcomes) - failed,
                'failed': failed,
            }
        return summary

    def summary(self) -> Dict[str, object]:
        return {
            'identities_total': self.identities_total,
            'identities_processed': self.identities_processed,
            'identities_skipped': self.identities_skipped,
            'identities_failed': self.identities_failed,
            'resources_updated': self.resources_updated,
            'resources_failed': self.resources_failed,
            'resources_planned': self.resources_planned,
            'relocations': self.relocation_counts(),
            'dry_run': self.dry_run,
            'cancelled': self.cancelled,
        }

    def to_json(self) -> str:
        """Serialise the summary and full audit trail."""
        payload = self.model_dump(mode='json')
        payload['summary'] = self.summary()
        return json.dumps(payload, indent=2)
