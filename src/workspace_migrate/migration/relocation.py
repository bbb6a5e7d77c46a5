"""Existence-checked relocation of blob artifacts."""

from typing import List, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..api.exceptions import BlobConflict, BlobError, BlobNotFound
from ..models.project import SubResource, SubResourceKind
from ..models.relocation import RelocationRecord, RelocationStatus
from ..storage.blob_store import BlobStore


class ArtifactRule(BaseModel):
    """How one artifact kind maps from the legacy layout to the new one.

    Templates are relative to their root and may use ``{owner}``,
    ``{resource}`` and ``{local}``. The new template never includes the owner.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description='Artifact name used in the audit trail')
    kind: SubResourceKind = Field(..., description='Sub-resource kind it applies to')
    legacy_template: str
    new_template: str
    content_type: str


BRANCH_FUNCTIONS = ArtifactRule(
    name='functions',
    kind=SubResourceKind.BRANCH,
    legacy_template='{owner}/{resource}/functions/{local}.js',
    new_template='{resource}/branches/{local}/function.js',
    content_type='application/javascript',
)

VERSION_FUNCTIONS = ArtifactRule(
    name='functions',
    kind=SubResourceKind.VERSION,
    legacy_template='{owner}/{resource}/functions/functions_v{local}.js',
    new_template='{resource}/versions/{local}/functions.js',
    content_type='application/javascript',
)

VERSION_APP_CONFIG = ArtifactRule(
    name='appconfig',
    kind=SubResourceKind.VERSION,
    legacy_template='{owner}/{resource}/appconfig/appconfig_v{local}.json',
    new_template='{resource}/versions/{local}/appconfig.json',
    content_type='application/json',
)

DEFAULT_RULES: Tuple[ArtifactRule, ...] = (
    BRANCH_FUNCTIONS,
    VERSION_FUNCTIONS,
    VERSION_APP_CONFIG,
)


def _join(root: str, path: str) -> str:
    return f'{root}/{path}' if root else path


def legacy_key(
    legacy_root: str,
    owner_id: str,
    resource_id: str,
    local_id: str,
    rule: ArtifactRule,
) -> str:
    """Key of an artifact in the per-owner legacy layout."""
    path = rule.legacy_template.format(
        owner=owner_id, resource=resource_id, local=local_id
    )
    return _join(legacy_root, path)


def canonical_key(
    new_root: str, resource_id: str, local_id: str, rule: ArtifactRule
) -> str:
    """Key of an artifact in the per-resource layout."""
    path = rule.new_template.format(resource=resource_id, local=local_id)
    return _join(new_root, path)


def rules_for(
    kind: SubResourceKind, rules: Tuple[ArtifactRule, ...] = DEFAULT_RULES
) -> List[ArtifactRule]:
    return [rule for rule in rules if rule.kind == kind]


class BlobRelocator:
    """Copies artifacts to their canonical key at most once."""

    def __init__(
        self,
        store: BlobStore,
        legacy_root: str = '',
        new_root: str = '',
        rules: Tuple[ArtifactRule, ...] = DEFAULT_RULES,
        dry_run: bool = False,
    ):
        self.store = store
        self.legacy_root = legacy_root
        self.new_root = new_root
        self.rules = rules
        self.dry_run = dry_run
        self.logger = logger.bind(component='BlobRelocator')

    def relocate(
        self, old_key: str, new_key: str, content_type: str, **audit
    ) -> RelocationRecord:
        """Copy ``old_key`` to ``new_key`` unless the new key already exists.

        Never raises for storage errors; they are returned as ``failed``
        records. ``audit`` fields are copied onto the record.
        """

        def record(status: RelocationStatus, error: str = None) -> RelocationRecord:
            return RelocationRecord(
                old_key=old_key,
                new_key=new_key,
                status=status,
                error=error,
                dry_run=self.dry_run,
                **audit,
            )

        try:
            exists = self.store.head(new_key)
        except BlobError as e:
            self.logger.warning(f'Could not check existence of {new_key}: {e}')
            return record(RelocationStatus.FAILED, str(e))

        if exists:
            self.logger.info(f'Skipped {new_key}: already exists')
            return record(RelocationStatus.SKIPPED_EXISTS)

        if self.dry_run:
            return self._probe_legacy(old_key, record)

        try:
            body = self.store.get(old_key)
        except BlobNotFound:
            self.logger.info(f'Skipped {old_key}: does not exist')
            return record(RelocationStatus.SKIPPED_MISSING)
        except BlobError as e:
            self.logger.warning(f'Could not fetch {old_key}: {e}')
            return record(RelocationStatus.FAILED, str(e))

        try:
            self.store.put(new_key, body, content_type)
        except BlobConflict:
            self.logger.info(f'Skipped {new_key}: created concurrently')
            return record(RelocationStatus.SKIPPED_EXISTS)
        except BlobError as e:
            self.logger.warning(f'Could not write {new_key}: {e}')
            return record(RelocationStatus.FAILED, str(e))

        self.logger.info(f'Migrated {old_key} -> {new_key}')
        return record(RelocationStatus.MIGRATED)

    def _probe_legacy(self, old_key, record) -> RelocationRecord:
        try:
            present = self.store.head(old_key)
        except BlobError as e:
            return record(RelocationStatus.FAILED, str(e))
        if not present:
            return record(RelocationStatus.SKIPPED_MISSING)
        self.logger.info(f'Dry run: would migrate {old_key}')
        return record(RelocationStatus.MIGRATED)

    def relocate_sub_resource(
        self, owner_id: str, sub_resource: SubResource
    ) -> List[RelocationRecord]:
        """Relocate every artifact of one branch or version independently."""
        records = []
        for rule in rules_for(sub_resource.kind, self.rules):
            records.append(
                self.relocate(
                    legacy_key(
                        self.legacy_root,
                        owner_id,
                        sub_resource.resource_id,
                        sub_resource.local_id,
                        rule,
                    ),
                    canonical_key(
                        self.new_root,
                        sub_resource.resource_id,
                        sub_resource.local_id,
                        rule,
                    ),
                    rule.content_type,
                    resource_id=sub_resource.resource_id,
                    kind=sub_resource.kind.value,
                    local_id=sub_resource.local_id,
                    artifact=rule.name,
                )
            )
        return records
