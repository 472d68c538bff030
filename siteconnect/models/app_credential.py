from datetime import datetime

from pydantic import BaseModel, ConfigDict


class StoredAppCredential(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    client_id: str
    client_secret_encrypted: str
    created_at: datetime
    updated_at: datetime


class AppCredentials(BaseModel):
    """Decrypted client pair, held only for the duration of an outgoing call."""

    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"AppCredentials(client_id={self.client_id!r}, client_secret='***')"

    __str__ = __repr__
