from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.authorization_flow_service import AuthorizationFlowService
from siteconnect.services.connection_health_service import ConnectionHealthService
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.flow_state_store import FlowStateStore, flow_state_store
from siteconnect.services.resource_discovery_service import ResourceDiscoveryService
from siteconnect.services.token_refresher import TokenRefresher
from siteconnect.services.token_sweeper import TokenSweeper

__all__ = [
    "AppCredentialService",
    "AuthorizationFlowService",
    "ConnectionHealthService",
    "CredentialStore",
    "FlowStateStore",
    "flow_state_store",
    "ResourceDiscoveryService",
    "TokenRefresher",
    "TokenSweeper",
]
