from siteconnect.integrations.providers.atlassian.adapters import (
    adapt_accessible_resources,
    adapt_projects,
    adapt_token_response,
    adapt_user,
    describe_token_error,
)
from siteconnect.integrations.providers.atlassian.constants import (
    ATLASSIAN_PROVIDER_SLUG,
    INVALID_GRANT_ERRORS,
)
from siteconnect.integrations.providers.atlassian.provider import (
    AtlassianProvider,
    atlassian_provider,
)

__all__ = [
    "adapt_accessible_resources",
    "adapt_projects",
    "adapt_token_response",
    "adapt_user",
    "describe_token_error",
    "ATLASSIAN_PROVIDER_SLUG",
    "INVALID_GRANT_ERRORS",
    "AtlassianProvider",
    "atlassian_provider",
]
