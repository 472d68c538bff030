from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UpsertConnectionCredentialDTO(BaseModel):
    user_scope: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    grant_id: str = Field(..., min_length=1)
    site_name: str
    site_url: str
    avatar_url: str | None = None
    access_token_encrypted: str
    refresh_token_encrypted: str | None = None
    token_expires_at: datetime
    granted_scopes: list[str] = Field(default_factory=list)


class UpdateTokensDTO(BaseModel):
    access_token_encrypted: str
    refresh_token_encrypted: str | None = None
    token_expires_at: datetime
    last_refreshed_at: datetime


class DeactivateCredentialDTO(BaseModel):
    credential_ids: list[UUID]
    reason: str


class CreateCachedResourceDTO(BaseModel):
    external_id: str
    resource_key: str
    name: str
    resource_type: str | None = None
