from pydantic import BaseModel, Field

from grant_management.models.authorization_detail import AuthorizationDetail


class CreateAuthorizationRequestDTO(BaseModel):
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
    expires_in: int = Field(90, gt=0)
