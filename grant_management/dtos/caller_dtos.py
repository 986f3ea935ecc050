from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CallerClaims(BaseModel):
    model_config = ConfigDict(extra="allow")

    sub: str | None = None
    client_id: str | None = None
    azp: str | None = None


class CallerContext(BaseModel):
    """Identity of the party calling an endpoint, taken from its bearer token."""

    authenticated: bool = False
    client_id: str | None = None
    subject: str | None = None
    claims: dict[str, Any] = Field(default_factory=dict)
