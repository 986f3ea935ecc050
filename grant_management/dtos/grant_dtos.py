from pydantic import BaseModel


class CreateGrantDTO(BaseModel):
    id: str
    client_id: str
    subject: str | None = None
    actor: str | None = None
    status: str = "active"
    scope: str = ""


class UpdateGrantDTO(BaseModel):
    client_id: str | None = None
    subject: str | None = None
    actor: str | None = None
    status: str | None = None
    scope: str | None = None


class GrantFilterDTO(BaseModel):
    subject: str | None = None
    client_id: str | None = None
    status: str | None = None
