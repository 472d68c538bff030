from siteconnect.integrations.core import (
    ApiClient,
    AuthContext,
    IntegrationException,
    ITenantProvider,
    SingleFlight,
    TenantSummary,
    TokenResponse,
)
from siteconnect.integrations.providers import AtlassianProvider, get_provider

__all__ = [
    # Core
    "ApiClient",
    "AuthContext",
    "IntegrationException",
    "ITenantProvider",
    "SingleFlight",
    "TenantSummary",
    "TokenResponse",
    # Providers
    "AtlassianProvider",
    "get_provider",
]
