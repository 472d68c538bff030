from siteconnect.integrations.core.client import ApiClient
from siteconnect.integrations.core.exceptions import (
    ApiRequestError,
    ConfigurationError,
    ConnectionNotFoundError,
    DecryptionError,
    IntegrationException,
    InvalidOrExpiredStateError,
    NotConfiguredError,
    ReauthorizationRequiredError,
    TokenExchangeFailedError,
    UpstreamAuthError,
    UpstreamTimeoutError,
)
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.core.single_flight import SingleFlight
from siteconnect.integrations.core.types import (
    ApiResponse,
    AuthContext,
    HttpMethod,
    RemoteProject,
    RemoteUser,
    RequestDefinition,
    TenantSummary,
    TokenPair,
    TokenResponse,
)

__all__ = [
    "ApiClient",
    "ApiRequestError",
    "ConfigurationError",
    "ConnectionNotFoundError",
    "DecryptionError",
    "IntegrationException",
    "InvalidOrExpiredStateError",
    "NotConfiguredError",
    "ReauthorizationRequiredError",
    "TokenExchangeFailedError",
    "UpstreamAuthError",
    "UpstreamTimeoutError",
    "ITenantProvider",
    "SingleFlight",
    "ApiResponse",
    "AuthContext",
    "HttpMethod",
    "RemoteProject",
    "RemoteUser",
    "RequestDefinition",
    "TenantSummary",
    "TokenPair",
    "TokenResponse",
]
