from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from siteconnect.constants.enums import ConnectionStatusKind


class ConnectedUser(BaseModel):
    account_id: str
    display_name: str
    email_address: str | None = None
    avatar_url: str | None = None


class ConnectedStatus(BaseModel):
    kind: Literal[ConnectionStatusKind.CONNECTED] = ConnectionStatusKind.CONNECTED
    tenant_id: str
    site_name: str
    site_url: str
    user: ConnectedUser
    accessible_project_count: int
    granted_scopes: list[str] = Field(default_factory=list)
    checked_at: datetime

    @property
    def connected(self) -> bool:
        return True


class DisconnectedStatus(BaseModel):
    kind: Literal[ConnectionStatusKind.DISCONNECTED] = ConnectionStatusKind.DISCONNECTED
    tenant_id: str
    site_name: str
    reason: str
    granted_scopes: list[str] = Field(default_factory=list)
    checked_at: datetime

    @property
    def connected(self) -> bool:
        return False


ConnectionStatus = Annotated[
    ConnectedStatus | DisconnectedStatus, Field(discriminator="kind")
]


class AccessibleSite(BaseModel):
    tenant_id: str
    name: str
    url: str
    scopes: list[str] = Field(default_factory=list)
    avatar_url: str | None = None
    connected: bool = False
