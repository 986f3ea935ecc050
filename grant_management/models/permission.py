from pydantic import BaseModel, ConfigDict


class Permission(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    resource_identifier: str  # "<grant_id>:<identifier>"
    grant_id: str
    attribute: str
    value: str
    request_id: str | None = None
