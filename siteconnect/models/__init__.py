from siteconnect.models.app_credential import AppCredentials, StoredAppCredential
from siteconnect.models.cached_resource import CachedResource
from siteconnect.models.connection_credential import ConnectionCredential
from siteconnect.models.connection_status import (
    AccessibleSite,
    ConnectedStatus,
    ConnectedUser,
    ConnectionStatus,
    DisconnectedStatus,
)
from siteconnect.models.oauth_flow_state import AuthorizationStart, OAuthFlowState

__all__ = [
    "AccessibleSite",
    "AppCredentials",
    "AuthorizationStart",
    "CachedResource",
    "ConnectedStatus",
    "ConnectedUser",
    "ConnectionCredential",
    "ConnectionStatus",
    "DisconnectedStatus",
    "OAuthFlowState",
    "StoredAppCredential",
]
