import base64
import hashlib
import logging
import secrets

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from siteconnect.integrations.core.exceptions import (
    ConfigurationError,
    DecryptionError,
)

logger = logging.getLogger(__name__)


def generate_oauth_state() -> str:
    return secrets.token_urlsafe(32)


def generate_pkce_pair() -> tuple[str, str]:
    """Return ``(code_verifier, code_challenge)`` using the S256 method."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
    return verifier, challenge


class TokenCipher:
    """Envelope for confidential columns.

    The first key encrypts; every configured key is tried on decrypt, so a new
    key can be prepended and old rows re-encrypted out of band.
    """

    def __init__(self, keys: list[str]):
        if not keys:
            raise ConfigurationError("At least one encryption key must be configured")
        try:
            self._fernet = MultiFernet([Fernet(k.encode()) for k in keys])
        except ValueError as e:
            raise ConfigurationError(f"Invalid encryption key: {e}") from e
        logger.debug("TokenCipher initialized with %d key(s)", len(keys))

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode()).decode()

    def decrypt(self, encrypted_value: str, field: str = "secret") -> str:
        try:
            return self._fernet.decrypt(encrypted_value.encode()).decode()
        except InvalidToken as e:
            logger.error("Failed to decrypt stored %s", field)
            raise DecryptionError(field) from e
