"""
Tests for encrypted credential storage.
"""

from datetime import timedelta

import pytest

from siteconnect.integrations.core.types import RemoteProject, TenantSummary, TokenResponse
from tests.fakes import utcnow

ACME = TenantSummary(tenant_id="cloud-1", name="Acme", url="https://acme.atlassian.net")


def _tokens(access: str = "access-1", refresh: str | None = "refresh-1", **kwargs):
    return TokenResponse(access_token=access, refresh_token=refresh, **kwargs)


class TestUpsert:
    @pytest.mark.asyncio
    async def test_tokens_are_stored_encrypted(self, credential_store, credential_repo):
        credential = await credential_store.upsert(
            "user-1", ACME, _tokens(expires_in=3600), grant_id="g1"
        )
        row = credential_repo.rows[credential.id]
        assert row.access_token_encrypted != "access-1"
        assert row.refresh_token_encrypted != "refresh-1"

        pair = credential_store.decrypt_tokens(credential)
        assert pair.access_token == "access-1"
        assert pair.refresh_token == "refresh-1"
        assert "access-1" not in repr(pair)

    @pytest.mark.asyncio
    async def test_reconnect_updates_instead_of_duplicating(
        self, credential_store, credential_repo
    ):
        first = await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g1")
        renamed = TenantSummary(tenant_id="cloud-1", name="Acme Corp", url=ACME.url)
        second = await credential_store.upsert(
            "user-1", renamed, _tokens(access="access-2"), grant_id="g2"
        )

        assert second.id == first.id
        assert second.site_name == "Acme Corp"
        assert second.grant_id == "g2"
        assert len(await credential_store.list_for_user("user-1")) == 1
        assert credential_store.decrypt_tokens(second).access_token == "access-2"

    @pytest.mark.asyncio
    async def test_reconnect_without_refresh_token_keeps_stored_one(self, credential_store):
        await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g1")
        updated = await credential_store.upsert(
            "user-1", ACME, _tokens(access="access-2", refresh=None), grant_id="g1"
        )
        assert credential_store.decrypt_tokens(updated).refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_reconnect_reactivates(self, credential_store):
        credential = await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g1")
        await credential_store.deactivate([credential.id], "invalid_grant")
        assert not (await credential_store.get("user-1", "cloud-1")).is_active

        again = await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g2")
        assert again.is_active
        assert again.last_error is None

    @pytest.mark.asyncio
    async def test_same_tenant_for_two_users_is_two_records(self, credential_store):
        a = await credential_store.upsert("alice", ACME, _tokens(), grant_id="g1")
        b = await credential_store.upsert("bob", ACME, _tokens(), grant_id="g2")
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_expiry_uses_expires_in_or_default(self, credential_store):
        now = utcnow()
        explicit = await credential_store.upsert(
            "user-1", ACME, _tokens(expires_in=60), grant_id="g1", now=now
        )
        assert explicit.token_expires_at == now + timedelta(seconds=60)

        other = TenantSummary(tenant_id="cloud-2", name="Beta", url="https://b.test")
        default = await credential_store.upsert(
            "user-1", other, _tokens(), grant_id="g1", now=now
        )
        assert default.token_expires_at == now + timedelta(seconds=3600)

    @pytest.mark.asyncio
    async def test_granted_scopes_come_from_token_response(self, credential_store):
        credential = await credential_store.upsert(
            "user-1", ACME, _tokens(scope="read:jira-work"), grant_id="g1"
        )
        assert credential.granted_scopes == ["read:jira-work"]


class TestTokenUpdates:
    @pytest.mark.asyncio
    async def test_update_applies_to_every_listed_credential(self, credential_store):
        beta = TenantSummary(tenant_id="cloud-2", name="Beta", url="https://b.test")
        a = await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g1")
        b = await credential_store.upsert("user-1", beta, _tokens(), grant_id="g1")

        updated = await credential_store.update_tokens(
            [a.id, b.id], _tokens(access="access-9", refresh="refresh-9", expires_in=60)
        )
        assert {c.tenant_id for c in updated} == {"cloud-1", "cloud-2"}
        for credential in updated:
            pair = credential_store.decrypt_tokens(credential)
            assert pair.access_token == "access-9"
            assert pair.refresh_token == "refresh-9"
            assert credential.last_refreshed_at is not None

    @pytest.mark.asyncio
    async def test_list_expiring_skips_inactive(self, credential_store):
        now = utcnow()
        soon = await credential_store.upsert(
            "user-1", ACME, _tokens(expires_in=30), grant_id="g1", now=now
        )
        beta = TenantSummary(tenant_id="cloud-2", name="Beta", url="https://b.test")
        dead = await credential_store.upsert(
            "user-1", beta, _tokens(expires_in=30), grant_id="g2", now=now
        )
        await credential_store.deactivate([dead.id], "revoked")

        expiring = await credential_store.list_expiring(now + timedelta(minutes=5))
        assert [c.id for c in expiring] == [soon.id]


class TestResources:
    @pytest.mark.asyncio
    async def test_replace_swaps_the_whole_set(self, credential_store):
        credential = await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g1")
        await credential_store.replace_resources(
            credential.id,
            [RemoteProject("1", "OLD", "Old"), RemoteProject("2", "KEEP", "Keep")],
        )
        await credential_store.replace_resources(
            credential.id,
            [RemoteProject("2", "KEEP", "Keep"), RemoteProject("3", "NEW", "New")],
        )

        keys = [r.resource_key for r in await credential_store.list_resources(credential.id)]
        assert keys == ["KEEP", "NEW"]

    @pytest.mark.asyncio
    async def test_delete_cascades_to_resources(self, credential_store):
        credential = await credential_store.upsert("user-1", ACME, _tokens(), grant_id="g1")
        await credential_store.replace_resources(
            credential.id, [RemoteProject("1", "ONE", "One")]
        )

        assert await credential_store.delete(credential.id)
        assert await credential_store.get("user-1", "cloud-1") is None
        assert await credential_store.list_resources(credential.id) == []
        assert not await credential_store.delete(credential.id)
