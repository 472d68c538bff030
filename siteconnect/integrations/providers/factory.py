from siteconnect.integrations.core.exceptions import ConfigurationError
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.providers.atlassian import atlassian_provider

_PROVIDERS: dict[str, ITenantProvider] = {
    "atlassian": atlassian_provider,
}

DEFAULT_PROVIDER_SLUG = "atlassian"


def get_provider_by_slug(slug: str) -> ITenantProvider | None:
    return _PROVIDERS.get(slug)


def get_provider() -> ITenantProvider:
    provider = get_provider_by_slug(DEFAULT_PROVIDER_SLUG)
    if provider is None:
        raise ConfigurationError(f"Unknown provider: {DEFAULT_PROVIDER_SLUG}")
    return provider
