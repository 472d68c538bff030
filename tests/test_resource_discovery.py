import pytest

from siteconnect.integrations.core.exceptions import (
    ApiRequestError,
    ConnectionNotFoundError,
    ReauthorizationRequiredError,
    UpstreamTimeoutError,
)
from siteconnect.integrations.core.types import RemoteProject, TenantSummary
from tests.fakes import make_credential


class TestCacheResources:
    @pytest.mark.asyncio
    async def test_cache_replaces_projects(
        self, discovery, credential_repo, credential_store, cipher, provider
    ):
        credential = credential_repo.add(make_credential(cipher))
        provider.projects = {
            "cloud-1": [RemoteProject("1", "ONE", "One"), RemoteProject("2", "TWO", "Two")]
        }
        first = await discovery.cache_resources(credential)
        assert [r.resource_key for r in first] == ["ONE", "TWO"]

        provider.projects = {"cloud-1": [RemoteProject("3", "THREE", "Three")]}
        await discovery.cache_resources(credential)
        cached = await discovery.get_cached_resources("user-1", "cloud-1")
        assert [r.resource_key for r in cached] == ["THREE"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [ApiRequestError(500, "project.search failed"), UpstreamTimeoutError("project.search", 20)],
    )
    async def test_failure_leaves_previous_cache_and_credential(
        self, discovery, credential_repo, credential_store, resource_repo, cipher, provider, error
    ):
        credential = credential_repo.add(make_credential(cipher))
        provider.projects = {"cloud-1": [RemoteProject("1", "ONE", "One")]}
        await discovery.cache_resources(credential)

        provider.project_error = error
        with pytest.raises(type(error)):
            await discovery.cache_resources(credential)

        cached = await discovery.get_cached_resources("user-1", "cloud-1")
        assert [r.resource_key for r in cached] == ["ONE"]
        assert resource_repo.replace_calls == 1
        assert (await credential_store.get("user-1", "cloud-1")).is_active

    @pytest.mark.asyncio
    async def test_stale_token_is_refreshed_first(
        self, discovery, credential_repo, cipher, provider
    ):
        credential = credential_repo.add(make_credential(cipher, expires_in=1))
        await discovery.cache_resources(credential)
        assert len(provider.refresh_calls) == 1

    @pytest.mark.asyncio
    async def test_refresh_for_unknown_tenant(self, discovery):
        with pytest.raises(ConnectionNotFoundError):
            await discovery.refresh_cached_resources("user-1", "missing")

    @pytest.mark.asyncio
    async def test_cached_resources_for_unknown_tenant(self, discovery):
        with pytest.raises(ConnectionNotFoundError):
            await discovery.get_cached_resources("user-1", "missing")


class TestAccessibleSites:
    @pytest.mark.asyncio
    async def test_sites_are_flagged_and_unique(
        self, discovery, credential_repo, cipher, provider
    ):
        credential_repo.add(make_credential(cipher, tenant_id="cloud-1", grant_id="g1"))
        credential_repo.add(make_credential(cipher, tenant_id="cloud-1b", grant_id="g1"))
        credential_repo.add(
            make_credential(cipher, tenant_id="cloud-9", grant_id="g2", access_token="other")
        )
        provider.tenants = [
            TenantSummary("cloud-1", "Acme", "https://acme.atlassian.net"),
            TenantSummary("cloud-2", "Beta", "https://beta.atlassian.net"),
        ]

        sites = await discovery.list_accessible_sites("user-1")

        assert [(s.tenant_id, s.connected) for s in sites] == [
            ("cloud-1", True),
            ("cloud-2", False),
        ]
        # One lookup per grant, not per stored site.
        assert len(provider.tenant_calls) == 2

    @pytest.mark.asyncio
    async def test_no_connections_means_no_sites(self, discovery, provider):
        assert await discovery.list_accessible_sites("user-1") == []
        assert provider.tenant_calls == []

    @pytest.mark.asyncio
    async def test_dead_grant_is_skipped(
        self, discovery, credential_repo, cipher, provider
    ):
        provider.refresh_error = ReauthorizationRequiredError(detail="invalid_grant")
        credential_repo.add(make_credential(cipher, grant_id="g1", expires_in=1))
        assert await discovery.list_accessible_sites("user-1") == []

    @pytest.mark.asyncio
    async def test_failing_grant_does_not_hide_the_others(
        self, discovery, credential_repo, cipher, provider
    ):
        credential_repo.add(
            make_credential(cipher, tenant_id="cloud-1", grant_id="g1", access_token="ok")
        )
        credential_repo.add(
            make_credential(cipher, tenant_id="cloud-9", grant_id="g2", access_token="slow")
        )
        provider.tenant_errors["slow"] = UpstreamTimeoutError("accessible-resources", 20)

        sites = await discovery.list_accessible_sites("user-1")

        assert [s.tenant_id for s in sites] == ["cloud-1"]
        assert sorted(provider.tenant_calls) == ["ok", "slow"]
