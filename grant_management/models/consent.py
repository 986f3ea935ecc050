from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Consent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    grant_id: str
    request_id: str
    subject: str
    scope: str = ""
    grant_management_action: str
    previous_consent_id: str | None = None  # head of the chain before this consent
    created_at: datetime
