"""Workspace (target container) models."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Workspace(BaseModel):
    """Grouping resource an identity's projects are re-parented into."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: str = Field(..., alias='_id', description='Generated workspace id')
    owner_id: str = Field(default='', alias='userId', description='Owning identity id')
    name: str = Field(default='', description='Workspace name')

    @model_validator(mode='before')
    @classmethod
    def coerce_ids(cls, data: Any) -> Any:
        # Object ids may come back as nested {"$oid": ...} or plain strings.
        if isinstance(data, dict):
            data = dict(data)
            for key in ('_id', 'id'):
                value = data.get(key)
                if isinstance(value, dict) and '$oid' in value:
                    data[key] = value['$oid']
                elif value is not None and not isinstance(value, str):
                    data[key] = str(value)
            if '_id' not in data and 'id' in data:
                data['_id'] = data.pop('id')
        return data


class WorkspaceCreate(BaseModel):
    """Body of a workspace creation request."""

    owner_id: str = Field(..., serialization_alias='userId')
    name: str = Field(...)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
