"""
Tests for connection probing and revocation.
"""

import asyncio
import time

import pytest

from siteconnect.constants.enums import ConnectionStatusKind
from siteconnect.integrations.core.exceptions import (
    ApiRequestError,
    ConnectionNotFoundError,
    ReauthorizationRequiredError,
    UpstreamAuthError,
    UpstreamTimeoutError,
)
from siteconnect.integrations.core.types import RemoteProject
from siteconnect.models.connection_status import ConnectedStatus, DisconnectedStatus
from tests.fakes import make_credential


class TestConnectionHealth:
    @pytest.mark.asyncio
    async def test_connected_status_reports_identity_and_counts(
        self, health, credential_repo, cipher, provider
    ):
        credential_repo.add(make_credential(cipher, granted_scopes=["read:jira-work"]))
        provider.projects = {
            "cloud-1": [RemoteProject("1", "A", "A"), RemoteProject("2", "B", "B")]
        }

        status = await health.test_connection("user-1", "cloud-1")

        assert isinstance(status, ConnectedStatus)
        assert status.kind == ConnectionStatusKind.CONNECTED
        assert status.user.display_name == "Dana Admin"
        assert status.accessible_project_count == 2
        assert status.granted_scopes == ["read:jira-work"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,reason",
        [
            (UpstreamAuthError(401, "myself rejected the access token"), "HTTP 401"),
            (UpstreamAuthError(403, "myself rejected the access token"), "HTTP 403"),
            (UpstreamTimeoutError("myself", 20), "did not respond"),
            (ApiRequestError(500, "myself failed: HTTP 500"), "HTTP 500"),
        ],
    )
    async def test_upstream_failures_degrade_to_disconnected(
        self, health, credential_repo, cipher, provider, error, reason
    ):
        credential_repo.add(make_credential(cipher))
        provider.user_error = error

        status = await health.test_connection("user-1", "cloud-1")

        assert isinstance(status, DisconnectedStatus)
        assert status.kind == ConnectionStatusKind.DISCONNECTED
        assert reason in status.reason
        assert status.site_name == "Site cloud-1"

    @pytest.mark.asyncio
    async def test_dead_refresh_token_degrades_to_disconnected(
        self, health, credential_repo, cipher, provider
    ):
        provider.refresh_error = ReauthorizationRequiredError(detail="invalid_grant")
        credential_repo.add(make_credential(cipher, expires_in=1))

        status = await health.test_connection("user-1", "cloud-1")
        assert isinstance(status, DisconnectedStatus)
        assert status.reason == "Reauthorization required"

    @pytest.mark.asyncio
    async def test_unknown_or_inactive_connection_is_not_found(
        self, health, credential_repo, cipher
    ):
        with pytest.raises(ConnectionNotFoundError):
            await health.test_connection("user-1", "cloud-1")

        credential_repo.add(make_credential(cipher, is_active=False))
        with pytest.raises(ConnectionNotFoundError):
            await health.test_connection("user-1", "cloud-1")

    @pytest.mark.asyncio
    async def test_all_runs_sites_concurrently(self, health, credential_repo, cipher, provider):
        for i in range(5):
            credential_repo.add(
                make_credential(cipher, tenant_id=f"cloud-{i}", grant_id=f"g{i}")
            )
        provider.site_delays = {f"cloud-{i}": 0.2 for i in range(5)}
        provider.site_errors = {"cloud-3": UpstreamTimeoutError("myself", 20)}

        started = time.monotonic()
        statuses = await health.test_all("user-1")
        elapsed = time.monotonic() - started

        assert len(statuses) == 5
        by_tenant = {s.tenant_id: s for s in statuses}
        assert isinstance(by_tenant["cloud-3"], DisconnectedStatus)
        assert all(
            isinstance(by_tenant[f"cloud-{i}"], ConnectedStatus) for i in (0, 1, 2, 4)
        )
        # Sequential probing would take at least 5 * 0.2s per call.
        assert elapsed < 0.8

    @pytest.mark.asyncio
    async def test_unexpected_error_degrades_to_disconnected(
        self, health, credential_repo, cipher, provider
    ):
        credential_repo.add(make_credential(cipher))
        provider.user_error = ValueError("invalid literal for int()")

        status = await health.test_connection("user-1", "cloud-1")

        assert isinstance(status, DisconnectedStatus)
        assert status.reason == "Unexpected error while checking the site"

    @pytest.mark.asyncio
    async def test_one_broken_site_does_not_sink_the_others(
        self, health, credential_repo, cipher, provider
    ):
        credential_repo.add(make_credential(cipher, tenant_id="cloud-1", grant_id="g1"))
        credential_repo.add(make_credential(cipher, tenant_id="cloud-2", grant_id="g2"))
        provider.site_errors = {"cloud-2": UnicodeDecodeError("utf-8", b"\xff", 0, 1, "bad")}

        statuses = await health.test_all("user-1")

        kinds = {s.tenant_id: s.kind for s in statuses}
        assert kinds == {
            "cloud-1": ConnectionStatusKind.CONNECTED,
            "cloud-2": ConnectionStatusKind.DISCONNECTED,
        }

    @pytest.mark.asyncio
    async def test_cancelling_a_probe_stops_upstream_calls(
        self, health, credential_repo, cipher, provider
    ):
        credential_repo.add(make_credential(cipher))
        provider.site_delays = {"cloud-1": 5}

        task = asyncio.create_task(health.test_connection("user-1", "cloud-1"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestRevoke:
    @pytest.mark.asyncio
    async def test_revoke_then_test_is_not_found(
        self, health, credential_repo, cipher, provider
    ):
        credential_repo.add(make_credential(cipher))

        await health.revoke("user-1", "cloud-1")

        assert provider.revoke_calls == ["refresh-0"]
        with pytest.raises(ConnectionNotFoundError):
            await health.test_connection("user-1", "cloud-1")

    @pytest.mark.asyncio
    async def test_remote_failure_still_removes_locally(
        self, health, credential_repo, credential_store, cipher, provider
    ):
        provider.revoke_error = UpstreamTimeoutError("token.revoke", 20)
        credential = credential_repo.add(make_credential(cipher))
        await credential_store.replace_resources(
            credential.id, [RemoteProject("1", "ONE", "One")]
        )

        await health.revoke("user-1", "cloud-1")

        assert await credential_store.get("user-1", "cloud-1") is None
        assert await credential_store.list_resources(credential.id) == []

    @pytest.mark.asyncio
    async def test_shared_grant_is_not_revoked_remotely(
        self, health, credential_repo, credential_store, cipher, provider
    ):
        credential_repo.add(make_credential(cipher, tenant_id="cloud-1"))
        credential_repo.add(make_credential(cipher, tenant_id="cloud-2"))

        await health.revoke("user-1", "cloud-1")
        assert provider.revoke_calls == []
        assert await credential_store.get("user-1", "cloud-2") is not None

        await health.revoke("user-1", "cloud-2")
        assert provider.revoke_calls == ["refresh-0"]

    @pytest.mark.asyncio
    async def test_revoke_unknown_tenant(self, health):
        with pytest.raises(ConnectionNotFoundError):
            await health.revoke("user-1", "missing")
