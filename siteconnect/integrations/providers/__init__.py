from siteconnect.integrations.providers.atlassian import AtlassianProvider
from siteconnect.integrations.providers.factory import get_provider, get_provider_by_slug

__all__ = ["AtlassianProvider", "get_provider", "get_provider_by_slug"]
