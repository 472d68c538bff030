from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ConnectionCredential(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_scope: str
    tenant_id: str
    grant_id: str
    site_name: str
    site_url: str
    avatar_url: str | None = None
    access_token_encrypted: str
    refresh_token_encrypted: str | None = None
    token_expires_at: datetime
    granted_scopes: list[str] = Field(default_factory=list)
    is_active: bool = True
    last_refreshed_at: datetime | None = None
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def refresh_key(self) -> str:
        return f"{self.user_scope}:{self.grant_id}"
