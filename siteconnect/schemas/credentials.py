from pydantic import BaseModel, Field


class SetAppCredentialsRequest(BaseModel):
    client_id: str = Field(..., max_length=255)
    client_secret: str = Field(..., max_length=1024)


class AppCredentialStatusResponse(BaseModel):
    configured: bool
