from siteconnect.dtos.credential_dtos import (
    CreateCachedResourceDTO,
    DeactivateCredentialDTO,
    UpdateTokensDTO,
    UpsertConnectionCredentialDTO,
)

__all__ = [
    "CreateCachedResourceDTO",
    "DeactivateCredentialDTO",
    "UpdateTokensDTO",
    "UpsertConnectionCredentialDTO",
]
