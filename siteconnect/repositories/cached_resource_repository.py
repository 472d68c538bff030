from uuid import UUID

import asyncpg

from siteconnect.database.query_builder import bind_named
from siteconnect.dtos.credential_dtos import CreateCachedResourceDTO
from siteconnect.models.cached_resource import CachedResource


class CachedResourceRepository:

    _SELECT_FIELDS = """
        id, credential_id, external_id, resource_key, name, resource_type, cached_at
    """

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def find_by_credential(self, credential_id: UUID) -> list[CachedResource]:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM cached_resources
            WHERE credential_id = :credential_id
            ORDER BY resource_key
        """
        query, values = bind_named(query, {"credential_id": credential_id})
        rows = await self._pool.fetch(query, *values)
        return [self._map_to_model(row) for row in rows if row]

    async def replace_for_credential(
        self, credential_id: UUID, resources: list[CreateCachedResourceDTO]
    ) -> list[CachedResource]:
        """Swap the cached set for a credential in a single transaction."""
        delete_query, delete_values = bind_named(
            "DELETE FROM cached_resources WHERE credential_id = :credential_id",
            {"credential_id": credential_id},
        )
        insert_query = """
            INSERT INTO cached_resources (
                credential_id, external_id, resource_key, name, resource_type
            ) VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (credential_id, external_id) DO UPDATE SET
                resource_key = EXCLUDED.resource_key,
                name = EXCLUDED.name,
                resource_type = EXCLUDED.resource_type,
                cached_at = NOW()
        """
        select_query, select_values = bind_named(
            f"""
            SELECT {self._SELECT_FIELDS}
            FROM cached_resources
            WHERE credential_id = :credential_id
            ORDER BY resource_key
            """,
            {"credential_id": credential_id},
        )

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(delete_query, *delete_values)
                if resources:
                    await conn.executemany(
                        insert_query,
                        [
                            (
                                credential_id,
                                r.external_id,
                                r.resource_key,
                                r.name,
                                r.resource_type,
                            )
                            for r in resources
                        ],
                    )
                rows = await conn.fetch(select_query, *select_values)
        return [self._map_to_model(row) for row in rows if row]

    def _map_to_model(self, row: asyncpg.Record | None) -> CachedResource | None:
        if row is None:
            return None
        return CachedResource.model_validate(dict(row))
