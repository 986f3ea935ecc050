from grant_management.constants.oauth_errors import OAUTH_ERROR_MESSAGES, OAuthErrorCode


class AppException(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthenticationException(AppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status_code=401)


class NotFoundException(AppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status_code=404)


class ValidationException(AppException):
    def __init__(self, code: str, message: str, details: list | None = None):
        super().__init__(code, message, status_code=400)
        self.details = details or []


class OAuthException(Exception):
    """Protocol error rendered as an OAuth error object."""

    def __init__(
        self,
        error: OAuthErrorCode,
        description: str | None = None,
        status_code: int = 400,
    ):
        self.error = error
        self.description = description or OAUTH_ERROR_MESSAGES.get(error, "")
        self.status_code = status_code
        super().__init__(self.description)

