from pydantic import BaseModel


class CreateConsentDTO(BaseModel):
    grant_id: str
    request_id: str
    subject: str
    scope: str = ""
    grant_management_action: str
