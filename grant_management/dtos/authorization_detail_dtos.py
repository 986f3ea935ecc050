from pydantic import BaseModel

from grant_management.models.authorization_detail import AuthorizationDetail


class CreateAuthorizationDetailDTO(BaseModel):
    consent_id: str
    grant_id: str
    request_id: str
    identifier: str
    detail: AuthorizationDetail
