from typing import Any

from pydantic import BaseModel, Field

from grant_management.models.authorization_detail import AuthorizationDetail


class PushedAuthorizationRequest(BaseModel):
    response_type: str = "code"
    client_id: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)
    scope: str = ""
    state: str | None = None
    grant_management_action: str | None = None
    grant_id: str | None = None
    # JSON string per RFC 9396; JSON bodies may send the array itself
    authorization_details: str | list[dict[str, Any]] | None = None
    requested_actor: str | None = None
    subject: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None


class PushedAuthorizationResponse(BaseModel):
    request_uri: str
    expires_in: int


class AuthorizeRequest(BaseModel):
    request_uri: str = Field(..., min_length=1)
    client_id: str | None = None


class TokenRequest(BaseModel):
    grant_type: str = ""
    code: str | None = None
    redirect_uri: str | None = None
    client_id: str | None = None
    code_verifier: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    scope: str
    grant_id: str
    authorization_details: list[AuthorizationDetail]
    actor: str | None = None


class AuthorizationServerMetadata(BaseModel):
    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    pushed_authorization_request_endpoint: str
    grant_management_endpoint: str
    authorization_details_types_supported: list[str]
    grant_types_supported: list[str]
    response_types_supported: list[str]
    code_challenge_methods_supported: list[str]
    grant_management_actions_supported: list[str]
    require_pushed_authorization_requests: bool = True
