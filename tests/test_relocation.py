"""Tests for blob relocation."""

from workspace_migrate.migration.relocation import (
    BRANCH_FUNCTIONS,
    VERSION_APP_CONFIG,
    VERSION_FUNCTIONS,
    BlobRelocator,
    canonical_key,
    legacy_key,
)
from workspace_migrate.models import RelocationStatus, SubResource, SubResourceKind

from conftest import InMemoryBlobStore

OLD = 'public/owner-1/proj-1/functions/main.js'
NEW = 'public/proj-1/branches/main/function.js'


class TestKeyNaming:
    """Legacy and canonical key construction."""

    def test_branch_function_keys(self):
        assert legacy_key('public', 'owner-1', 'proj-1', 'main', BRANCH_FUNCTIONS) == OLD
        assert canonical_key('public', 'proj-1', 'main', BRANCH_FUNCTIONS) == NEW

    def test_version_keys(self):
        assert (
            legacy_key('public', 'owner-1', 'proj-1', '4', VERSION_FUNCTIONS)
            == 'public/owner-1/proj-1/functions/functions_v4.js'
        )
        assert (
            canonical_key('public', 'proj-1', '4', VERSION_FUNCTIONS)
            == 'public/proj-1/versions/4/functions.js'
        )
        assert (
            legacy_key('public', 'owner-1', 'proj-1', '4', VERSION_APP_CONFIG)
            == 'public/owner-1/proj-1/appconfig/appconfig_v4.json'
        )
        assert (
            canonical_key('public', 'proj-1', '4', VERSION_APP_CONFIG)
            == 'public/proj-1/versions/4/appconfig.json'
        )

    def test_new_key_drops_owner(self):
        first = canonical_key('public', 'proj-1', 'main', BRANCH_FUNCTIONS)
        second = canonical_key('public', 'proj-1', 'main', BRANCH_FUNCTIONS)
        assert first == second
        assert 'owner-1' not in first

    def test_separate_roots_and_empty_root(self):
        assert (
            canonical_key('v2', 'proj-1', 'main', BRANCH_FUNCTIONS)
            == 'v2/proj-1/branches/main/function.js'
        )
        assert (
            legacy_key('', 'owner-1', 'proj-1', 'main', BRANCH_FUNCTIONS)
            == 'owner-1/proj-1/functions/main.js'
        )

    def test_content_types(self):
        assert BRANCH_FUNCTIONS.content_type == 'application/javascript'
        assert VERSION_FUNCTIONS.content_type == 'application/javascript'
        assert VERSION_APP_CONFIG.content_type == 'application/json'


class TestRelocate:
    """The head-get-put protocol."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = InMemoryBlobStore({OLD: b'console.log(1)'})
        self.relocator = BlobRelocator(self.store, 'public', 'public')

    def test_relocate_twice_is_idempotent(self):
        first = self.relocator.relocate(OLD, NEW, 'application/javascript')
        calls_after_first = len(self.store.calls)
        second = self.relocator.relocate(OLD, NEW, 'application/javascript')

        assert first.status == RelocationStatus.MIGRATED
        assert second.status == RelocationStatus.SKIPPED_EXISTS
        assert self.store.objects[NEW] == self.store.objects[OLD]
        assert self.store.content_types[NEW] == 'application/javascript'
        assert self.store.calls[calls_after_first:] == [('head', NEW)]

    def test_protocol_order(self):
        self.relocator.relocate(OLD, NEW, 'application/javascript')

        assert self.store.calls == [('head', NEW), ('get', OLD), ('put', NEW)]

    def test_missing_legacy_artifact(self):
        record = self.relocator.relocate(
            'public/owner-1/proj-1/functions/gone.js', NEW, 'application/javascript'
        )

        assert record.status == RelocationStatus.SKIPPED_MISSING
        assert NEW not in self.store.objects
        assert 'put' not in [op for op, _ in self.store.calls]

    def test_head_failure_records_failed(self):
        self.store.fail_head.add(NEW)

        record = self.relocator.relocate(OLD, NEW, 'application/javascript')

        assert record.status == RelocationStatus.FAILED
        assert 'head failed' in record.error
        assert self.store.calls == [('head', NEW)]

    def test_fetch_failure_records_failed(self):
        self.store.fail_get.add(OLD)

        record = self.relocator.relocate(OLD, NEW, 'application/javascript')

        assert record.status == RelocationStatus.FAILED
        assert NEW not in self.store.objects

    def test_write_failure_records_failed(self):
        self.store.fail_put.add(NEW)

        record = self.relocator.relocate(OLD, NEW, 'application/javascript')

        assert record.status == RelocationStatus.FAILED
        assert 'put failed' in record.error

    def test_key_created_between_check_and_write(self):
        class RacingStore(InMemoryBlobStore):
            def get(self, key):
                body = super().get(key)
                self.objects[NEW] = b'written by another run'
                return body

        store = RacingStore({OLD: b'console.log(1)'})

        record = BlobRelocator(store, 'public', 'public').relocate(
            OLD, NEW, 'application/javascript'
        )

        assert record.status == RelocationStatus.SKIPPED_EXISTS
        assert store.objects[NEW] == b'written by another run'

    def test_record_carries_keys_and_audit_fields(self):
        record = self.relocator.relocate(
            OLD, NEW, 'application/javascript', resource_id='proj-1', artifact='functions'
        )

        assert record.old_key == OLD
        assert record.new_key == NEW
        assert record.resource_id == 'proj-1'
        assert record.artifact == 'functions'
        assert record.dry_run is False


class TestRelocateSubResource:
    """Per-artifact-rule relocation of branches and versions."""

    def test_branch_has_one_artifact(self):
        store = InMemoryBlobStore({OLD: b'x'})
        relocator = BlobRelocator(store, 'public', 'public')
        branch = SubResource(
            kind=SubResourceKind.BRANCH, resource_id='proj-1', local_id='main'
        )

        records = relocator.relocate_sub_resource('owner-1', branch)

        assert [(r.old_key, r.new_key, r.status) for r in records] == [
            (OLD, NEW, RelocationStatus.MIGRATED)
        ]

    def test_version_artifacts_evaluated_independently(self):
        store = InMemoryBlobStore(
            {'public/owner-1/proj-1/appconfig/appconfig_v2.json': b'{"a": 1}'}
        )
        relocator = BlobRelocator(store, 'public', 'public')
        version = SubResource(
            kind=SubResourceKind.VERSION, resource_id='proj-1', local_id='2'
        )

        records = relocator.relocate_sub_resource('owner-1', version)

        assert [(r.artifact, r.status) for r in records] == [
            ('functions', RelocationStatus.SKIPPED_MISSING),
            ('appconfig', RelocationStatus.MIGRATED),
        ]
        assert store.objects['public/proj-1/versions/2/appconfig.json'] == b'{"a": 1}'


class TestDryRun:
    """Dry run probes without writing."""

    def test_dry_run_does_not_write(self):
        store = InMemoryBlobStore({OLD: b'x'})
        relocator = BlobRelocator(store, 'public', 'public', dry_run=True)

        record = relocator.relocate(OLD, NEW, 'application/javascript')

        assert record.status == RelocationStatus.MIGRATED
        assert record.dry_run is True
        assert store.calls == [('head', NEW), ('head', OLD)]

    def test_dry_run_missing_legacy(self):
        store = InMemoryBlobStore()
        relocator = BlobRelocator(store, 'public', 'public', dry_run=True)

        record = relocator.relocate(OLD, NEW, 'application/javascript')

        assert record.status == RelocationStatus.SKIPPED_MISSING
