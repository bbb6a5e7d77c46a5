"""Identity entity models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """An external account being migrated. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description='External unique id (Firebase uid)')
    display_name: Optional[str] = Field(default=None, description='Display name')
    email: Optional[str] = Field(default=None, description='Email address')

    def workspace_name(self, default: str = 'Personal') -> str:
        """Name given to the workspace created for this identity."""
        return self.display_name or self.email or default
