import logging
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Annotated

import asyncpg
from fastapi import Depends

from siteconnect.core.exceptions import AppException
from siteconnect.core.settings import settings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


class DatabaseUnavailableError(AppException):
    def __init__(self, message: str):
        super().__init__("DATABASE_UNAVAILABLE", message, status_code=503)


class PostgreSQLConnection:

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        min_size: int = 1,
        max_size: int = 10,
    ):
        self.pool: asyncpg.Pool | None = None
        self.database = database
        self.config = {
            "host": host,
            "port": port,
            "user": user,
            "password": password,
            "database": database,
            "min_size": min_size,
            "max_size": max_size,
        }

    async def connect(self) -> None:
        if self.pool is not None:
            return

        logger.info("Connecting to PostgreSQL database: %s", self.database)
        try:
            self.pool = await asyncpg.create_pool(**self.config)
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Failed to create connection pool for %s: %s", self.database, e)
            self.pool = None
            raise DatabaseUnavailableError(f"Database connection failed: {e}") from e
        logger.info("PostgreSQL connection pool ready: %s", self.database)

    async def close(self) -> None:
        if self.pool is None:
            return
        logger.info("Closing PostgreSQL connection pool: %s", self.database)
        try:
            await self.pool.close()
        finally:
            self.pool = None

    async def apply_schema(self, schema_path: Path = SCHEMA_PATH) -> None:
        """Run the idempotent DDL in ``schema.sql``."""
        ddl = schema_path.read_text(encoding="utf-8")
        async with self.get_connection() as conn:
            await conn.execute(ddl)
        logger.info("Database schema applied from %s", schema_path.name)

    def get_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise DatabaseUnavailableError(
                "Database connection pool is not initialized. Call connect() first."
            )
        return self.pool

    def get_connection(self) -> asyncpg.pool.PoolAcquireContext:
        return self.get_pool().acquire()

    async def is_connected(self) -> bool:
        if self.pool is None or self.pool.is_closing():
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning("Database health probe failed: %s", e)
            return False
        return True


db_connection = PostgreSQLConnection(
    host=settings.database_host,
    port=settings.database_port,
    user=settings.database_user,
    password=settings.database_password,
    database=settings.database_name,
    min_size=settings.database_pool_min_size,
    max_size=settings.database_pool_max_size,
)


async def get_db_pool() -> AsyncGenerator[asyncpg.Pool, None]:
    yield db_connection.get_pool()


DbPoolDep = Annotated[asyncpg.Pool, Depends(get_db_pool)]
