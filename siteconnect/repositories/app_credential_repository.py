import asyncpg

from siteconnect.models.app_credential import StoredAppCredential


class AppCredentialRepository:
    """Single-row table holding the OAuth client registration."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get(self) -> StoredAppCredential | None:
        row = await self._pool.fetchrow(
            """
            SELECT client_id, client_secret_encrypted, created_at, updated_at
            FROM app_credentials
            WHERE id = 1
            """
        )
        if row is None:
            return None
        return StoredAppCredential.model_validate(dict(row))

    async def save(
        self, client_id: str, client_secret_encrypted: str
    ) -> StoredAppCredential:
        row = await self._pool.fetchrow(
            """
            INSERT INTO app_credentials (id, client_id, client_secret_encrypted)
            VALUES (1, $1, $2)
            ON CONFLICT (id) DO UPDATE SET
                client_id = EXCLUDED.client_id,
                client_secret_encrypted = EXCLUDED.client_secret_encrypted,
                updated_at = NOW()
            RETURNING client_id, client_secret_encrypted, created_at, updated_at
            """,
            client_id,
            client_secret_encrypted,
        )
        return StoredAppCredential.model_validate(dict(row))

    async def delete(self) -> bool:
        result = await self._pool.execute("DELETE FROM app_credentials WHERE id = 1")
        return result.endswith(" 1")
