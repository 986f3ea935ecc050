from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from grant_management.models.authorization_detail import AuthorizationDetail


class AuthorizationRequest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    grant_id: str
    client_id: str
    redirect_uri: str
    response_type: str = "code"
    scope: str = ""
    state: str | None = None

    authorization_details: list[AuthorizationDetail] = Field(default_factory=list)
    grant_management_action: str

    requested_actor: str | None = None
    subject: str | None = None

    code_challenge: str | None = None
    code_challenge_method: str | None = None

    status: str = "pending"
    expires_in: int = 90

    consented_at: datetime | None = None
    code_used_at: datetime | None = None
    created_at: datetime

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.expires_in)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
