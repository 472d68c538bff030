from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from siteconnect.models.cached_resource import CachedResource
from siteconnect.models.connection_credential import ConnectionCredential


class StartAuthorizationRequest(BaseModel):
    redirect_uri: str | None = None


class AuthorizationStartResponse(BaseModel):
    authorization_url: str
    state: str
    expires_at: datetime


class ConnectionSummaryResponse(BaseModel):
    """Outward view of a stored connection; token columns are never included."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    site_name: str
    site_url: str
    avatar_url: str | None = None
    granted_scopes: list[str] = Field(default_factory=list)
    is_active: bool
    token_expires_at: datetime
    last_refreshed_at: datetime | None = None
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_credential(cls, credential: ConnectionCredential) -> "ConnectionSummaryResponse":
        return cls.model_validate(credential, from_attributes=True)


class OAuthCallbackResponse(BaseModel):
    connections: list[ConnectionSummaryResponse]


class CachedResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    external_id: str
    resource_key: str
    name: str
    resource_type: str | None = None
    cached_at: datetime

    @classmethod
    def from_resource(cls, resource: CachedResource) -> "CachedResourceResponse":
        return cls.model_validate(resource, from_attributes=True)
