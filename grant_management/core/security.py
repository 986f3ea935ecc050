import jwt
from pydantic import ValidationError

from grant_management.core.settings import settings
from grant_management.dtos.caller_dtos import CallerClaims, CallerContext


class CallerTokenService:

    def verify_caller_token(self, token: str) -> CallerClaims | None:
        if not settings.jwt_secret_key:
            return None
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"verify_aud": False},
            )
            return CallerClaims(**payload)
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        except ValidationError:
            return None

    def to_context(self, claims: CallerClaims) -> CallerContext:
        return CallerContext(
            authenticated=True,
            client_id=claims.client_id or claims.azp,
            subject=claims.sub,
            claims=claims.model_dump(exclude_none=True),
        )


caller_token_service = CallerTokenService()
