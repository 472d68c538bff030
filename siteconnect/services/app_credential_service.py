import logging

from siteconnect.core.exceptions import ValidationException
from siteconnect.integrations.core.exceptions import NotConfiguredError
from siteconnect.models.app_credential import AppCredentials
from siteconnect.repositories.app_credential_repository import AppCredentialRepository
from siteconnect.utils.crypto import TokenCipher

logger = logging.getLogger(__name__)


class AppCredentialService:
    def __init__(self, repository: AppCredentialRepository, cipher: TokenCipher):
        self._repo = repository
        self._cipher = cipher

    async def set(self, client_id: str, client_secret: str) -> None:
        client_id = (client_id or "").strip()
        client_secret = (client_secret or "").strip()
        if not client_id:
            raise ValidationException("client_id must not be empty", field="client_id")
        if not client_secret:
            raise ValidationException(
                "client_secret must not be empty", field="client_secret"
            )

        await self._repo.save(client_id, self._cipher.encrypt(client_secret))
        logger.info("OAuth client credentials updated for client %s", client_id)

    async def get(self) -> AppCredentials:
        stored = await self._repo.get()
        if stored is None:
            raise NotConfiguredError()
        return AppCredentials(
            client_id=stored.client_id,
            client_secret=self._cipher.decrypt(
                stored.client_secret_encrypted, field="client secret"
            ),
        )

    async def clear(self) -> None:
        if await self._repo.delete():
            logger.info("OAuth client credentials cleared")

    async def status(self) -> dict[str, bool]:
        return {"configured": await self._repo.get() is not None}
