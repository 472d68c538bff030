import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from siteconnect.core.logging import setup_logging
from siteconnect.core.settings import settings
from siteconnect.database import db_connection
from siteconnect.integrations.providers.factory import get_provider
from siteconnect.repositories.app_credential_repository import AppCredentialRepository
from siteconnect.repositories.cached_resource_repository import (
    CachedResourceRepository,
)
from siteconnect.repositories.connection_credential_repository import (
    ConnectionCredentialRepository,
)
from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.token_refresher import TokenRefresher
from siteconnect.services.token_sweeper import TokenSweeper
from siteconnect.utils.crypto import TokenCipher

logger = logging.getLogger(__name__)


def build_token_sweeper() -> TokenSweeper:
    pool = db_connection.get_pool()
    cipher = TokenCipher(settings.encryption_key_list)
    refresher = TokenRefresher(
        CredentialStore(
            ConnectionCredentialRepository(pool), CachedResourceRepository(pool), cipher
        ),
        AppCredentialService(AppCredentialRepository(pool), cipher),
        get_provider(),
    )
    return TokenSweeper(refresher.refresh_expiring, settings.token_sweep_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging(settings.log_level)
    logger.info("Application startup initiated")
    await db_connection.connect()
    await db_connection.apply_schema()

    sweeper: TokenSweeper | None = None
    if settings.token_sweep_interval_seconds > 0:
        sweeper = build_token_sweeper()
        sweeper.start()

    yield

    logger.info("Application shutdown initiated")
    if sweeper is not None:
        await sweeper.stop()
    await db_connection.close()
