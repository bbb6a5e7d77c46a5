"""Migration orchestrator for moving identities' projects into workspaces."""

from datetime import datetime
from typing import List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..api.client import ResourceClient
from ..api.exceptions import APIError, ResourceUpdateError
from ..api.pacing import RequestPacer
from ..auth.token import TokenProvider
from ..identity.source import IdentitySource
from ..models.identity import Identity
from ..models.project import Project, SubResourceKind
from ..models.report import (
    IdentityOutcome,
    IdentityState,
    MigrationReport,
    ResourceOutcome,
    ResourceStatus,
    Sweep,
)
from ..models.workspace import Workspace
from .relocation import BlobRelocator


class MigrationContext(BaseModel):
    """Collaborators and settings of one run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    identity_source: IdentitySource = Field(..., description='Identity enumeration')
    token_provider: TokenProvider = Field(..., description='Bearer credentials')
    resource_client: ResourceClient = Field(..., description='Resource API client')
    relocator: Optional[BlobRelocator] = Field(
        default=None, description='Artifact relocator; None disables the sweep'
    )
    pacer: RequestPacer = Field(default_factory=RequestPacer)

    identity_limit: Optional[int] = Field(
        default=None, description='Process only the first N identities'
    )
    default_workspace_name: str = Field(default='Personal')
    migrate_ownership: bool = Field(default=True)
    relocate_artifacts: bool = Field(default=True)
    dry_run: bool = Field(default=False)


class MigrationOrchestrator:
    """Drives a run: enumerate, relocate artifacts, re-parent projects.

    Failures are contained at the smallest unit (artifact, project,
    identity) and recorded on the report. Only identity enumeration
    errors propagate.
    """

    def __init__(self, context: MigrationContext):
        self.context = context
        self.client = context.resource_client
        self.logger = logger.bind(component='MigrationOrchestrator')
        self._cancelled = False

    def cancel(self) -> None:
        """Stop after the unit currently in flight."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def run(self) -> MigrationReport:
        """Execute both sweeps over the (possibly limited) identity list."""
        report = MigrationReport(dry_run=self.context.dry_run)
        self.logger.info('Starting workspace migration')

        identities = self.context.identity_source.list_all()
        report.identities_total = len(identities)

        selected = self.select_identities(identities)
        report.identities_skipped = len(identities) - len(selected)
        self.logger.info(
            f'Processing {len(selected)} of {len(identities)} identities'
        )

        # Legacy keys are listed from the pre-migration ownership, so artifacts go first.
        if self.context.relocate_artifacts and self.context.relocator is not None:
            self.run_artifact_sweep(selected, report)
        if self.context.migrate_ownership:
            self.run_ownership_sweep(selected, report)

        report.cancelled = self._cancelled
        report.completed_at = datetime.now()

        self.logger.info(
            f'Migration finished: {report.identities_processed} identities processed, '
            f'{report.identities_failed} failed, {report.identities_skipped} skipped; '
            f'{report.resources_updated} projects updated, '
            f'{report.resources_failed} failed'
        )
        return report

    def select_identities(self, identities: List[Identity]) -> List[Identity]:
        limit = self.context.identity_limit
        return identities if limit is None else identities[:limit]

    def run_ownership_sweep(
        self, identities: List[Identity], report: MigrationReport
    ) -> None:
        for index, identity in enumerate(identities, start=1):
            if self._cancelled:
                self.logger.warning('Ownership sweep cancelled')
                return
            self.logger.info(
                f'[{index}/{len(identities)}] Migrating ownership for '
                f'{identity.id} ({identity.email})'
            )
            report.identity_outcomes.append(self.migrate_identity(identity))

    def migrate_identity(self, identity: Identity) -> IdentityOutcome:
        """Move one identity's projects into its workspace.

        ``Start -> ContainerResolved -> ResourcesListed -> ResourcesUpdated -> Done``,
        or ``Failed`` at the first per-identity error.
        """
        outcome = IdentityOutcome(identity_id=identity.id, sweep=Sweep.OWNERSHIP)

        try:
            token = self.context.token_provider.get_token(identity.id)

            workspace, created = self.resolve_workspace(identity, token)
            outcome.workspace_id = workspace.id if workspace else None
            outcome.workspace_created = created
            outcome.advance(IdentityState.CONTAINER_RESOLVED)

            projects = self.client.list_owned_projects(
                identity.id, token, warnings=outcome.warnings
            )
            outcome.advance(IdentityState.RESOURCES_LISTED)
            self.logger.info(f'Found {len(projects)} projects for {identity.id}')

            if not projects:
                outcome.advance(IdentityState.DONE)
                return outcome

            outcome.resources = self.update_projects(projects, outcome.workspace_id, token)
            if len(outcome.resources) < len(projects):
                # Cancelled mid-loop; the outcome stays incomplete.
                outcome.warnings.append(
                    f'Cancelled after {len(outcome.resources)} of {len(projects)} projects'
                )
                return outcome
            outcome.advance(IdentityState.RESOURCES_UPDATED)
        except APIError as e:
            self.logger.error(f'Failed to migrate {identity.id}: {e}')
            outcome.fail(e)
            return outcome

        outcome.advance(IdentityState.DONE)
        self.logger.info(f'Migrated {identity.id}')
        return outcome

    def resolve_workspace(
        self, identity: Identity, token: str
    ) -> Tuple[Optional[Workspace], bool]:
        """Find the identity's workspace or create it.

        Returns:
            ``(workspace, created)``; in dry run a missing workspace yields
            ``(None, False)``
        """
        existing = self.client.find_workspaces(identity.id, token)
        if existing:
            self.logger.info(
                f'Found existing workspace {existing[0].id} for {identity.id}'
            )
            return existing[0], False

        name = identity.workspace_name(self.context.default_workspace_name)
        if self.context.dry_run:
            self.logger.info(f'Dry run: would create workspace "{name}" for {identity.id}')
            return None, False

        workspace = self.client.create_workspace(identity.id, name, token)
        self.logger.info(f'Created workspace {workspace.id} for {identity.id}')
        return workspace, True

    def update_projects(
        self, projects: List[Project], workspace_id: Optional[str], token: str
    ) -> List[ResourceOutcome]:
        """Re-parent projects one at a time with pacing between requests.

        Exactly one outcome is produced per project unless the run is
        cancelled, which stops before the next project.
        """
        results = []
        total = len(projects)
        # Nothing is sent in dry run, so there is nothing to pace.
        items = projects if self.context.dry_run else self.context.pacer.paced(projects)

        for index, project in enumerate(items, start=1):
            if self._cancelled:
                break
            if self.context.dry_run:
                results.append(
                    ResourceOutcome(
                        resource_id=project.project_id,
                        status=ResourceStatus.PLANNED,
                        target_owner_id=workspace_id,
                    )
                )
                continue

            self.logger.info(f'Updating project {index}/{total}: {project.project_id}')
            try:
                self.client.update_project_owner(project.project_id, workspace_id, token)
            except APIError as e:
                error = ResourceUpdateError(
                    str(e), resource_id=project.project_id, status_code=e.status_code
                )
                self.logger.error(f'Failed to update project {project.project_id}: {error}')
                results.append(
                    ResourceOutcome(
                        resource_id=project.project_id,
                        status=ResourceStatus.FAILED,
                        target_owner_id=workspace_id,
                        error=str(error),
                    )
                )
                continue

            results.append(
                ResourceOutcome(
                    resource_id=project.project_id,
                    status=ResourceStatus.UPDATED,
                    target_owner_id=workspace_id,
                )
            )

        updated = sum(1 for r in results if r.status == ResourceStatus.UPDATED)
        self.logger.info(f'Updated {updated}/{total} projects to workspace {workspace_id}')
        return results

    def run_artifact_sweep(
        self, identities: List[Identity], report: MigrationReport
    ) -> None:
        for index, identity in enumerate(identities, start=1):
            if self._cancelled:
                self.logger.warning('Artifact sweep cancelled')
                return
            self.logger.info(
                f'[{index}/{len(identities)}] Relocating artifacts for {identity.id}'
            )
            report.identity_outcomes.append(
                self.relocate_identity_artifacts(identity, report)
            )

    def relocate_identity_artifacts(
        self, identity: Identity, report: MigrationReport
    ) -> IdentityOutcome:
        """Relocate versions and branches of every project the identity owns.

        Records are appended to ``report.relocations`` as they are produced.
        """
        outcome = IdentityOutcome(identity_id=identity.id, sweep=Sweep.ARTIFACTS)

        try:
            token = self.context.token_provider.get_token(identity.id)
            projects = self.client.list_owned_projects(
                identity.id, token, warnings=outcome.warnings
            )
        except APIError as e:
            self.logger.error(f'Cannot relocate artifacts for {identity.id}: {e}')
            outcome.fail(e)
            return outcome
        outcome.advance(IdentityState.RESOURCES_LISTED)

        for project in projects:
            if self._cancelled:
                break
            self.relocate_project_artifacts(identity.id, project, token, outcome, report)

        if self._cancelled:
            outcome.warnings.append('Cancelled before every artifact was relocated')
            return outcome
        outcome.advance(IdentityState.DONE)
        return outcome

    def relocate_project_artifacts(
        self,
        identity_id: str,
        project: Project,
        token: str,
        outcome: IdentityOutcome,
        report: MigrationReport,
    ) -> None:
        """Relocate versions, then branches, of one project.

        Legacy keys are namespaced by the project's recorded owner, falling
        back to the identity when the listing carries none.
        """
        relocator = self.context.relocator
        owner_id = project.owner_id or identity_id

        for kind in (SubResourceKind.VERSION, SubResourceKind.BRANCH):
            try:
                sub_resources = self.client.list_sub_resources(
                    kind, project.project_id, token, warnings=outcome.warnings
                )
            except APIError as e:
                message = f'Failed to list {kind.value}s of {project.project_id}: {e}'
                self.logger.error(message)
                outcome.warnings.append(message)
                continue

            for sub_resource in sub_resources:
                if self._cancelled:
                    return
                report.relocations.extend(
                    relocator.relocate_sub_resource(owner_id, sub_resource)
                )
