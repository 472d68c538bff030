from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CachedResource(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    credential_id: UUID
    external_id: str
    resource_key: str
    name: str
    resource_type: str | None = None
    cached_at: datetime
