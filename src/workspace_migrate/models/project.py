"""Project and sub-resource models."""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class SubResourceKind(str, Enum):
    """Kinds of project children that carry blob artifacts."""

    BRANCH = 'branch'
    VERSION = 'version'


class Project(BaseModel):
    """A top-level resource owned by an identity."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(..., alias='projectId', description='Project id')
    owner_id: str = Field(default='', alias='userId', description='Current owner id')
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description='Remaining payload fields'
    )

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'Project':
        metadata = {
            k: v for k, v in payload.items() if k not in ('projectId', 'userId')
        }
        return cls(
            projectId=str(payload['projectId']),
            userId=str(payload.get('userId') or ''),
            metadata=metadata,
        )


class SubResource(BaseModel):
    """A branch or version of a project."""

    model_config = ConfigDict(frozen=True)

    kind: SubResourceKind
    resource_id: str = Field(..., description='Owning project id')
    local_id: str = Field(..., description='Branch id or version ordinal')

    @classmethod
    def from_payload(
        cls, kind: SubResourceKind, resource_id: str, item: Any
    ) -> 'SubResource':
        """Build from an API list item.

        Branches carry ``branchId`` (or ``id``); versions carry ``version`` or
        are returned as bare scalars.
        """
        if isinstance(item, dict):
            if kind == SubResourceKind.BRANCH:
                local_id = item.get('branchId') or item.get('id')
            else:
                local_id = item.get('version')
        else:
            local_id = item

        if local_id is None or local_id == '':
            raise ValueError(f'{kind.value} entry has no identifier: {item!r}')

        return cls(kind=kind, resource_id=resource_id, local_id=str(local_id))
