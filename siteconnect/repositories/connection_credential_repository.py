import json
from datetime import datetime
from uuid import UUID

import asyncpg

from siteconnect.database.query_builder import bind_named
from siteconnect.dtos.credential_dtos import (
    DeactivateCredentialDTO,
    UpdateTokensDTO,
    UpsertConnectionCredentialDTO,
)
from siteconnect.models.connection_credential import ConnectionCredential


class ConnectionCredentialRepository:

    _SELECT_FIELDS = """
        id, user_scope, tenant_id, grant_id, site_name, site_url, avatar_url,
        access_token_encrypted, refresh_token_encrypted, token_expires_at,
        granted_scopes, is_active, last_refreshed_at, last_error,
        created_at, updated_at
    """

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def find_by_scope_and_tenant(
        self, user_scope: str, tenant_id: str
    ) -> ConnectionCredential | None:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM connection_credentials
            WHERE user_scope = :user_scope AND tenant_id = :tenant_id
        """
        query, values = bind_named(
            query, {"user_scope": user_scope, "tenant_id": tenant_id}
        )
        row = await self._pool.fetchrow(query, *values)
        return self._map_to_model(row)

    async def find_by_user_scope(
        self, user_scope: str, active_only: bool = False
    ) -> list[ConnectionCredential]:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM connection_credentials
            WHERE user_scope = :user_scope
              AND (is_active OR NOT :active_only)
            ORDER BY site_name, tenant_id
        """
        query, values = bind_named(
            query, {"user_scope": user_scope, "active_only": active_only}
        )
        rows = await self._pool.fetch(query, *values)
        return [self._map_to_model(row) for row in rows if row]

    async def find_by_grant(
        self, user_scope: str, grant_id: str
    ) -> list[ConnectionCredential]:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM connection_credentials
            WHERE user_scope = :user_scope AND grant_id = :grant_id
            ORDER BY tenant_id
        """
        query, values = bind_named(
            query, {"user_scope": user_scope, "grant_id": grant_id}
        )
        rows = await self._pool.fetch(query, *values)
        return [self._map_to_model(row) for row in rows if row]

    async def find_expiring(self, before: datetime) -> list[ConnectionCredential]:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM connection_credentials
            WHERE is_active AND token_expires_at <= :before
            ORDER BY token_expires_at
        """
        query, values = bind_named(query, {"before": before})
        rows = await self._pool.fetch(query, *values)
        return [self._map_to_model(row) for row in rows if row]

    async def upsert(self, dto: UpsertConnectionCredentialDTO) -> ConnectionCredential:
        # A reconnect without a new refresh token keeps the stored one.
        query = f"""
            INSERT INTO connection_credentials (
                user_scope, tenant_id, grant_id, site_name, site_url, avatar_url,
                access_token_encrypted, refresh_token_encrypted, token_expires_at,
                granted_scopes
            ) VALUES (
                :user_scope, :tenant_id, :grant_id, :site_name, :site_url, :avatar_url,
                :access_token_encrypted, :refresh_token_encrypted, :token_expires_at,
                :granted_scopes::jsonb
            )
            ON CONFLICT (user_scope, tenant_id) DO UPDATE SET
                grant_id = EXCLUDED.grant_id,
                site_name = EXCLUDED.site_name,
                site_url = EXCLUDED.site_url,
                avatar_url = EXCLUDED.avatar_url,
                access_token_encrypted = EXCLUDED.access_token_encrypted,
                refresh_token_encrypted = COALESCE(
                    EXCLUDED.refresh_token_encrypted,
                    connection_credentials.refresh_token_encrypted
                ),
                token_expires_at = EXCLUDED.token_expires_at,
                granted_scopes = EXCLUDED.granted_scopes,
                is_active = TRUE,
                last_error = NULL,
                updated_at = NOW()
            RETURNING {self._SELECT_FIELDS}
        """
        params = dto.model_dump()
        params["granted_scopes"] = json.dumps(dto.granted_scopes)
        query, values = bind_named(query, params)
        row = await self._pool.fetchrow(query, *values)
        return self._map_to_model(row)

    async def update_tokens(
        self, credential_ids: list[UUID], dto: UpdateTokensDTO
    ) -> list[ConnectionCredential]:
        query = f"""
            UPDATE connection_credentials
            SET access_token_encrypted = :access_token_encrypted,
                refresh_token_encrypted = COALESCE(
                    :refresh_token_encrypted, refresh_token_encrypted
                ),
                token_expires_at = :token_expires_at,
                last_refreshed_at = :last_refreshed_at,
                last_error = NULL,
                updated_at = NOW()
            WHERE id = ANY(:credential_ids::uuid[])
            RETURNING {self._SELECT_FIELDS}
        """
        params = {"credential_ids": credential_ids, **dto.model_dump()}
        query, values = bind_named(query, params)
        rows = await self._pool.fetch(query, *values)
        return [self._map_to_model(row) for row in rows if row]

    async def deactivate(self, dto: DeactivateCredentialDTO) -> int:
        query = """
            UPDATE connection_credentials
            SET is_active = FALSE,
                last_error = :reason,
                updated_at = NOW()
            WHERE id = ANY(:credential_ids::uuid[])
        """
        query, values = bind_named(
            query, {"credential_ids": dto.credential_ids, "reason": dto.reason}
        )
        result = await self._pool.execute(query, *values)
        return _affected_rows(result)

    async def delete(self, credential_id: UUID) -> bool:
        query = "DELETE FROM connection_credentials WHERE id = :credential_id"
        query, values = bind_named(query, {"credential_id": credential_id})
        result = await self._pool.execute(query, *values)
        return _affected_rows(result) > 0

    def _map_to_model(self, row: asyncpg.Record | None) -> ConnectionCredential | None:
        if row is None:
            return None
        data = dict(row)
        scopes = data.get("granted_scopes")
        if isinstance(scopes, str):
            data["granted_scopes"] = json.loads(scopes)
        elif scopes is None:
            data["granted_scopes"] = []
        return ConnectionCredential.model_validate(data)


def _affected_rows(status: str) -> int:
    # asyncpg returns the command tag, e.g. "UPDATE 3".
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0
