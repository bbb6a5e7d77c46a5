"""Resource API client implementation."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError

from ..config.config import ApiConfig
from ..models.project import Project, SubResource, SubResourceKind
from ..models.workspace import Workspace, WorkspaceCreate
from .exceptions import (
    APIError,
    AuthError,
    MalformedResponse,
    NotFoundError,
    RateLimitError,
    TransientAPIError,
)


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


SUB_RESOURCE_ENDPOINTS = {
    SubResourceKind.BRANCH: '/branches/getByProjectId',
    SubResourceKind.VERSION: '/version/getAll',
}


def parse_retry_after(value: Optional[str], default: int = 60) -> int:
    """Seconds to wait from a ``Retry-After`` header.

    Accepts delay-seconds (integer or fractional) and HTTP dates; anything
    unparseable yields ``default``.
    """
    if value is None:
        return default

    try:
        return max(0, int(float(value)))
    except (ValueError, OverflowError):
        pass

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return default
    if when is None:
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0, int((when - datetime.now(timezone.utc)).total_seconds()))


def unwrap(payload: Any) -> Any:
    """Return ``payload['data']['response']`` or None when absent."""
    if not isinstance(payload, dict):
        return None
    data = payload.get('data')
    if not isinstance(data, dict):
        return None
    return data.get('response')


class ResourceClient:
    """Client for the workspace/project API.

    Every operation takes the bearer credential of the acting identity; the
    client itself holds no identity state.
    """

    def __init__(self, config: ApiConfig, session: Optional[requests.Session] = None):
        """Initialize resource client.

        Args:
            config: API configuration
            session: Optional preconfigured HTTP session
        """
        self.config = config
        self.base_url = config.base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                'Content-Type': 'application/json',
                'User-Agent': 'workspace-migrate/0.1.0',
            }
        )

        logger.info(f'Initialized resource client for {self.base_url}')

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            APIError: For various API errors
        """
        headers = dict(response.headers)
        status = response.status_code

        if status == 429:
            retry_after = parse_retry_after(headers.get('Retry-After'))
            raise RateLimitError(
                f'Rate limit exceeded. Retry after {retry_after} seconds',
                retry_after=retry_after,
                status_code=status,
            )

        if status in (401, 403):
            raise AuthError('Authentication failed', status_code=status)

        if status == 404:
            raise NotFoundError('Resource not found', status_code=status)

        if status >= 400:
            error_data = None
            try:
                error_data = response.json()
                message = error_data.get('message', f'HTTP {status}')
            except (ValueError, AttributeError):
                message = f'HTTP {status}: {response.text}'

            error_cls = TransientAPIError if status >= 500 else APIError
            raise error_cls(
                f'API request failed: {message}',
                status_code=status,
                response_data=error_data if isinstance(error_data, dict) else None,
            )

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        return APIResponse(
            status_code=status,
            data=data,
            headers=headers,
            success=200 <= status < 300,
        )

    def post(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
        project_id: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> APIResponse:
        """Make POST request.

        Args:
            endpoint: API endpoint
            data: Request body data
            token: Bearer credential of the acting identity
            project_id: Value of the ``projectId`` header, when scoped
            timeout: Request timeout overriding the configured default

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        headers = {}
        if token:
            headers['Authorization'] = token
        if project_id:
            headers['projectId'] = project_id

        try:
            response = self.session.post(
                url,
                json=data,
                headers=headers,
                timeout=timeout or self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f'Network error during POST {endpoint}: {e}')
            raise TransientAPIError(f'Network error: {e}')

        return self._handle_response(response)

    def find_workspaces(self, owner_id: str, token: str) -> List[Workspace]:
        """List workspaces owned by an identity.

        A 404 or an empty payload means the identity has no workspace yet.
        """
        try:
            response = self.post(
                '/workspace/getAllForOwner', data={'userId': owner_id}, token=token
            )
        except NotFoundError:
            return []

        items = unwrap(response.data)
        if not items:
            return []
        if not isinstance(items, list):
            raise MalformedResponse(
                f'Unexpected workspace list for {owner_id}',
                status_code=response.status_code,
                response_data=response.data,
            )

        try:
            return [Workspace.model_validate(item) for item in items]
        except ValidationError as e:
            raise MalformedResponse(f'Invalid workspace payload for {owner_id}: {e}')

    def create_workspace(self, owner_id: str, name: str, token: str) -> Workspace:
        """Create a workspace unconditionally.

        Callers must look up existing workspaces first.
        """
        body = WorkspaceCreate(owner_id=owner_id, name=name).to_payload()
        response = self.post('/workspace/create', data=body, token=token)

        payload = unwrap(response.data)
        if not isinstance(payload, dict):
            raise MalformedResponse(
                f'Workspace creation for {owner_id} returned no workspace',
                status_code=response.status_code,
                response_data=response.data,
            )

        payload.setdefault('userId', owner_id)
        payload.setdefault('name', name)
        try:
            return Workspace.model_validate(payload)
        except ValidationError as e:
            raise MalformedResponse(f'Invalid workspace payload for {owner_id}: {e}')

    def list_owned_projects(
        self, owner_id: str, token: str, warnings: Optional[List[str]] = None
    ) -> List[Project]:
        """List projects owned by an identity.

        A payload without a project list degrades to an empty list; the
        problem is appended to ``warnings`` instead of failing the identity.
        """
        response = self.post(
            '/project/getAllUserOwnedProjects', data={'userId': owner_id}, token=token
        )

        payload = unwrap(response.data)
        projects = payload.get('projects') if isinstance(payload, dict) else None

        if not isinstance(projects, list):
            message = f'{MalformedResponse.__name__}: no valid project list for {owner_id}'
            logger.warning(f'{message}. Response: {response.data}')
            if warnings is not None:
                warnings.append(message)
            return []

        result = []
        for item in projects:
            try:
                result.append(Project.from_payload(item))
            except (KeyError, TypeError, ValidationError) as e:
                message = f'Skipping unparseable project for {owner_id}: {e}'
                logger.warning(message)
                if warnings is not None:
                    warnings.append(message)
        return result

    def update_project_owner(
        self, project_id: str, new_owner_id: str, token: str
    ) -> APIResponse:
        """Re-parent a project to a new owner."""
        return self.post(
            '/project/update',
            data={'update': {'userId': new_owner_id}},
            token=token,
            project_id=project_id,
            timeout=self.config.update_timeout,
        )

    def list_sub_resources(
        self,
        kind: SubResourceKind,
        project_id: str,
        token: str,
        warnings: Optional[List[str]] = None,
    ) -> List[SubResource]:
        """List branches or versions of a project."""
        response = self.post(
            SUB_RESOURCE_ENDPOINTS[kind],
            data={'projectId': project_id},
            token=token,
            project_id=project_id,
        )

        items = unwrap(response.data) or []
        if not isinstance(items, list):
            raise MalformedResponse(
                f'Unexpected {kind.value} list for project {project_id}',
                status_code=response.status_code,
                response_data=response.data,
            )

        result = []
        for item in items:
            try:
                result.append(SubResource.from_payload(kind, project_id, item))
            except ValueError as e:
                logger.warning(str(e))
                if warnings is not None:
                    warnings.append(str(e))
        return result

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.info('Resource client session closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
