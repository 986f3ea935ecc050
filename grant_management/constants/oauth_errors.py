from enum import Enum


class OAuthErrorCode(str, Enum):
    INVALID_REQUEST = "invalid_request"
    INVALID_REQUEST_URI = "invalid_request_uri"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    INVALID_AUTHORIZATION_DETAILS = "invalid_authorization_details"
    CONSENT_REQUIRED = "consent_required"
    ACCESS_DENIED = "access_denied"


OAUTH_ERROR_MESSAGES: dict[OAuthErrorCode, str] = {
    OAuthErrorCode.INVALID_REQUEST: "The request is missing a required parameter or is malformed.",
    OAuthErrorCode.INVALID_REQUEST_URI: "The request_uri is unknown, expired or already used.",
    OAuthErrorCode.INVALID_CLIENT: "The client_id does not match the authorization request.",
    OAuthErrorCode.INVALID_GRANT: "The authorization code is invalid, expired or already used.",
    OAuthErrorCode.UNSUPPORTED_GRANT_TYPE: "Only the authorization_code grant type is supported.",
    OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS: "authorization_details must be a JSON array of typed objects.",
    OAuthErrorCode.CONSENT_REQUIRED: "Essential authorization details were not approved.",
    OAuthErrorCode.ACCESS_DENIED: "The authenticated user may not act on this request.",
}
