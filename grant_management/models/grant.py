from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Grant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    subject: str | None = None
    actor: str | None = None

    status: str = "active"
    scope: str = ""

    created_at: datetime
    updated_at: datetime
    revoked_at: datetime | None = None
