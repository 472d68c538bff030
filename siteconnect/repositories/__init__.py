from siteconnect.repositories.app_credential_repository import AppCredentialRepository
from siteconnect.repositories.cached_resource_repository import CachedResourceRepository
from siteconnect.repositories.connection_credential_repository import (
    ConnectionCredentialRepository,
)

__all__ = [
    "AppCredentialRepository",
    "CachedResourceRepository",
    "ConnectionCredentialRepository",
]
