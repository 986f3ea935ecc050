from datetime import datetime

from pydantic import BaseModel, Field

from grant_management.models.authorization_detail import AuthorizationDetail


class ConsentSummaryResponse(BaseModel):
    id: str
    request_id: str
    subject: str
    scope: str
    grant_management_action: str
    previous_consent_id: str | None = None
    authorization_details: list[AuthorizationDetail] = Field(default_factory=list)
    created_at: datetime


class GrantResponse(BaseModel):
    id: str
    client_id: str
    subject: str | None = None
    actor: str | None = None
    scope: str
    status: str
    authorization_details: list[AuthorizationDetail] = Field(default_factory=list)
    consents: list[ConsentSummaryResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    revoked_at: datetime | None = None


class GrantListResponse(BaseModel):
    grants: list[GrantResponse]
    total: int


class PermissionResponse(BaseModel):
    resource_identifier: str
    grant_id: str
    attribute: str
    value: str
    request_id: str | None = None


class PermissionListResponse(BaseModel):
    grant_id: str
    permissions: list[PermissionResponse]
