"""Shared fixtures: in-memory stand-ins for the external boundaries."""

import pytest

from workspace_migrate.api.client import ResourceClient
from workspace_migrate.api.exceptions import (
    AuthError,
    BlobConflict,
    BlobIOError,
    BlobNotFound,
    TransientAPIError,
)
from workspace_migrate.api.pacing import RequestPacer
from workspace_migrate.auth.token import TokenProvider
from workspace_migrate.config.config import ApiConfig, AuthConfig
from workspace_migrate.identity.source import IdentitySource
from workspace_migrate.migration.orchestrator import (
    MigrationContext,
    MigrationOrchestrator,
)
from workspace_migrate.migration.relocation import BlobRelocator
from workspace_migrate.models import (
    Project,
    SubResource,
    SubResourceKind,
    Workspace,
)


class InMemoryBlobStore:
    """Dict-backed blob store recording every call."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.content_types = {}
        self.calls = []
        self.fail_head = set()
        self.fail_get = set()
        self.fail_put = set()

    def head(self, key):
        self.calls.append(('head', key))
        if key in self.fail_head:
            raise BlobIOError(f'head failed for {key}', key=key)
        return key in self.objects

    def get(self, key):
        self.calls.append(('get', key))
        if key in self.fail_get:
            raise BlobIOError(f'get failed for {key}', key=key)
        if key not in self.objects:
            raise BlobNotFound(f'{key} does not exist', key=key)
        return self.objects[key]

    def put(self, key, body, content_type):
        self.calls.append(('put', key))
        if key in self.fail_put:
            raise BlobIOError(f'put failed for {key}', key=key)
        if key in self.objects:
            raise BlobConflict(f'{key} already exists', key=key)
        self.objects[key] = body
        self.content_types[key] = content_type

    def calls_for(self, key):
        return [op for op, k in self.calls if k == key]


class PagedIdentityProvider:
    """Serves pre-built pages keyed by cursor."""

    def __init__(self, pages, fail_on_page=None):
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.requests = []

    def list_page(self, page_size, cursor=None):
        index = int(cursor) if cursor else 0
        self.requests.append((page_size, cursor))
        if self.fail_on_page == index:
            raise ConnectionError('provider unavailable')
        next_cursor = str(index + 1) if index + 1 < len(self.pages) else None
        return list(self.pages[index]), next_cursor


class StaticTokenProvider(TokenProvider):
    """Issues ``Bearer token-<id>`` without any network exchange."""

    def __init__(self, failing=()):
        super().__init__(AuthConfig(api_key='test-key'), signer=None)
        self.failing = set(failing)
        self.issued = []

    def get_token(self, identity_id):
        if identity_id in self.failing:
            raise AuthError(f'Could not mint assertion for {identity_id}')
        self.issued.append(identity_id)
        return f'Bearer token-{identity_id}'


class InMemoryResourceClient(ResourceClient):
    """Resource API backed by dictionaries, recording calls in order."""

    def __init__(self):
        super().__init__(ApiConfig())
        self.workspaces = {}
        self.projects = {}
        self.sub_resources = {}
        self.calls = []
        self.fail_find = set()
        self.fail_update = set()
        self.fail_sub_resources = set()
        self.malformed_projects = set()
        self.listed_by = {}
        self._next_id = 1

    def find_workspaces(self, owner_id, token):
        self.calls.append(('find_workspaces', owner_id))
        if owner_id in self.fail_find:
            raise TransientAPIError('HTTP 503', status_code=503)
        return list(self.workspaces.get(owner_id, []))

    def create_workspace(self, owner_id, name, token):
        self.calls.append(('create_workspace', owner_id))
        workspace = Workspace(_id=f'ws-{self._next_id}', userId=owner_id, name=name)
        self._next_id += 1
        self.workspaces.setdefault(owner_id, []).append(workspace)
        return workspace

    def list_owned_projects(self, owner_id, token, warnings=None):
        self.calls.append(('list_owned_projects', owner_id))
        if owner_id in self.malformed_projects:
            if warnings is not None:
                warnings.append(f'MalformedResponse: no valid project list for {owner_id}')
            return []
        return [
            project
            for project in self.projects.values()
            if self.listed_by.get(project.project_id, project.owner_id) == owner_id
        ]

    def update_project_owner(self, project_id, new_owner_id, token):
        self.calls.append(('update_project_owner', project_id))
        if project_id in self.fail_update:
            raise TransientAPIError('Network error: timed out')
        self.projects[project_id] = self.projects[project_id].model_copy(
            update={'owner_id': new_owner_id}
        )

    def list_sub_resources(self, kind, project_id, token, warnings=None):
        self.calls.append(('list_sub_resources', kind.value, project_id))
        if (kind, project_id) in self.fail_sub_resources:
            raise TransientAPIError('HTTP 502', status_code=502)
        return [
            SubResource(kind=kind, resource_id=project_id, local_id=local_id)
            for local_id in self.sub_resources.get((kind, project_id), [])
        ]

    def add_project(
        self, project_id, owner_id, branches=(), versions=(), listed_by=None
    ):
        self.projects[project_id] = Project(projectId=project_id, userId=owner_id)
        self.sub_resources[(SubResourceKind.BRANCH, project_id)] = list(branches)
        self.sub_resources[(SubResourceKind.VERSION, project_id)] = list(versions)
        if listed_by is not None:
            self.listed_by[project_id] = listed_by

    def operations(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def resource_client():
    client = InMemoryResourceClient()
    yield client
    client.close()


@pytest.fixture
def token_provider():
    return StaticTokenProvider()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_orchestrator(resource_client, token_provider, blob_store, sleeps):
    """Build an orchestrator over the in-memory fakes."""

    def pause(delay):
        sleeps.append(delay)
        resource_client.calls.append(('sleep', delay))

    def build(identities, dry_run=False, **overrides):
        provider = PagedIdentityProvider([identities])
        settings = dict(
            identity_source=IdentitySource(provider),
            token_provider=token_provider,
            resource_client=resource_client,
            relocator=BlobRelocator(
                blob_store, legacy_root='public', new_root='public', dry_run=dry_run
            ),
            pacer=RequestPacer(0.2, sleep=pause),
            dry_run=dry_run,
        )
        settings.update(overrides)
        return MigrationOrchestrator(MigrationContext(**settings))

    return build
