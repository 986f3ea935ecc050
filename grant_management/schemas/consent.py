from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from grant_management.models.authorization_detail import AuthorizationDetail
from grant_management.schemas.grant import GrantResponse


class ConsentSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str | None = None
    scope: str | None = None
    request_id: str | None = Field(default=None, alias="request_ID")
    grant_id: str | None = None
    client_id: str | None = None
    authorization_details: str | list[dict[str, Any]] | None = None


class ConsentEntryView(BaseModel):
    name: str
    essential: bool = False


class AuthorizationDetailView(BaseModel):
    index: int
    type: str
    identifier: str
    title: str
    description: str
    category: str
    risk_level: str
    locations: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    entries: list[ConsentEntryView] = Field(default_factory=list)


class ConsentRequestView(BaseModel):
    id: str
    client_id: str
    redirect_uri: str
    scope: str
    grant_management_action: str
    requested_actor: str | None = None
    subject: str | None = None
    status: str
    expires_in: int
    authorization_details: list[AuthorizationDetail]


class ConsentView(BaseModel):
    request_id: str
    consent_endpoint: str
    grant: GrantResponse
    request: ConsentRequestView
    authorization_details: list[AuthorizationDetailView]
