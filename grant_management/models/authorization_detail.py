"""Rich authorization detail variants (RFC 9396) keyed by ``type_code``.

Clients send the variant tag as ``type``; it is held internally as
``type_code``. ``AUTHORIZATION_DETAIL_TYPES`` is the dispatch table used
for parsing, rendering and flattening; the ``AuthorizationDetail`` union
is what schemas and records declare so that variant fields survive
serialization.
"""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from grant_management.constants.enums import AuthorizationDetailType, RiskLevel


class EssentialClaim(BaseModel):
    essential: bool = False


Claim = bool | EssentialClaim | None


class AuthorizationDetailBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: ClassVar[str] = "Authorization detail"
    description: ClassVar[str] = ""
    category: ClassVar[str] = "general"
    risk_level: ClassVar[RiskLevel] = RiskLevel.LOW
    claims_field: ClassVar[str | None] = None
    array_fields: ClassVar[tuple[str, ...]] = ("actions", "locations", "resources")
    scalar_fields: ClassVar[tuple[str, ...]] = ()
    # fields that say which resource a detail is about; a consent may not change them
    identity_fields: ClassVar[tuple[str, ...]] = ("locations",)

    type_code: str = Field(alias="type")
    identifier: str | None = None
    locations: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)

    def key(self, index: int) -> str:
        return self.identifier or f"{self.type_code}-{index}"

    def identity(self) -> tuple:
        if self.identifier:
            return (self.type_code, "identifier", self.identifier)
        return (self.type_code, *(_frozen(getattr(self, name)) for name in self.identity_fields))

    def exceeds(self, requested: "AuthorizationDetailBase") -> list[str]:
        """Entries of this detail that ``requested`` does not cover."""
        extra = [
            f"{self.claims_field}.{name}"
            for name in self.claims()
            if name not in requested.claims()
        ]
        for name in self.array_fields:
            if name in self.identity_fields:
                continue
            if not set(getattr(self, name)) <= set(getattr(requested, name)):
                extra.append(name)
        for name in self.scalar_fields:
            if name in self.identity_fields:
                continue
            value = getattr(self, name)
            if value is not None and value != getattr(requested, name):
                extra.append(name)
        return extra

    def claims(self) -> dict[str, Claim]:
        if self.claims_field is None:
            return {}
        return dict(getattr(self, self.claims_field))

    def essential_entries(self) -> set[str]:
        return {
            name
            for name, claim in self.claims().items()
            if isinstance(claim, EssentialClaim) and claim.essential
        }

    def granted_entries(self) -> set[str]:
        return {name for name, claim in self.claims().items() if _is_granted(claim)}

    def normalized(self) -> "AuthorizationDetailBase":
        if self.claims_field is None:
            return self.model_copy(deep=True)
        claims = {name: _is_granted(claim) for name, claim in self.claims().items()}
        return self.model_copy(update={self.claims_field: claims}, deep=True)

    def approve_all(self) -> "AuthorizationDetailBase":
        if self.claims_field is None:
            return self.model_copy(deep=True)
        claims = {name: True for name in self.claims()}
        return self.model_copy(update={self.claims_field: claims}, deep=True)

    def matches_location(self, server_location: str) -> bool:
        return server_location in self.locations

    def permits(self, action: str, resource_id: str) -> bool:
        if action not in self.actions:
            return False
        return resource_id in self.resources

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class McpAuthorizationDetail(AuthorizationDetailBase):
    title: ClassVar[str] = "MCP tools"
    description: ClassVar[str] = "Call tools exposed by an MCP server on your behalf"
    category: ClassVar[str] = "tools"
    risk_level: ClassVar[RiskLevel] = RiskLevel.MEDIUM
    claims_field: ClassVar[str | None] = "tools"
    scalar_fields: ClassVar[tuple[str, ...]] = ("server", "transport")
    identity_fields: ClassVar[tuple[str, ...]] = ("server", "locations")

    type_code: Literal["mcp"] = Field(default="mcp", alias="type")
    server: str | None = None
    transport: str | None = None
    tools: dict[str, Claim] = Field(default_factory=dict)

    def matches_location(self, server_location: str) -> bool:
        if self.server is not None:
            return self.server == server_location
        return server_location in self.locations

    def permits(self, action: str, resource_id: str) -> bool:
        # tool access is the action; the tools map carries no separate action list
        return _is_granted(self.tools.get(resource_id, False))


class FsAuthorizationDetail(AuthorizationDetailBase):
    title: ClassVar[str] = "File system"
    description: ClassVar[str] = "Read or modify files below the listed roots"
    category: ClassVar[str] = "storage"
    risk_level: ClassVar[RiskLevel] = RiskLevel.HIGH
    claims_field: ClassVar[str | None] = "permissions"
    array_fields: ClassVar[tuple[str, ...]] = ("actions", "locations", "resources", "roots")
    identity_fields: ClassVar[tuple[str, ...]] = ("roots", "locations")

    type_code: Literal["fs"] = Field(default="fs", alias="type")
    roots: list[str] = Field(default_factory=list)
    permissions: dict[str, Claim] = Field(default_factory=dict)


class DatabaseAuthorizationDetail(AuthorizationDetailBase):
    title: ClassVar[str] = "Database"
    description: ClassVar[str] = "Query or change data in the listed databases"
    category: ClassVar[str] = "data"
    risk_level: ClassVar[RiskLevel] = RiskLevel.HIGH
    array_fields: ClassVar[tuple[str, ...]] = (
        "actions",
        "locations",
        "resources",
        "databases",
        "schemas",
        "tables",
    )
    identity_fields: ClassVar[tuple[str, ...]] = ("databases", "locations")

    type_code: Literal["database"] = Field(default="database", alias="type")
    databases: list[str] = Field(default_factory=list)
    schemas: list[str] = Field(default_factory=list)
    tables: list[str] = Field(default_factory=list)


class ApiAuthorizationDetail(AuthorizationDetailBase):
    title: ClassVar[str] = "API"
    description: ClassVar[str] = "Call the listed HTTP APIs"
    category: ClassVar[str] = "network"
    risk_level: ClassVar[RiskLevel] = RiskLevel.MEDIUM
    array_fields: ClassVar[tuple[str, ...]] = (
        "actions",
        "locations",
        "resources",
        "urls",
        "protocols",
    )
    identity_fields: ClassVar[tuple[str, ...]] = ("urls", "locations")

    type_code: Literal["api"] = Field(default="api", alias="type")
    urls: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)


AUTHORIZATION_DETAIL_TYPES: dict[str, type[AuthorizationDetailBase]] = {
    AuthorizationDetailType.MCP.value: McpAuthorizationDetail,
    AuthorizationDetailType.FS.value: FsAuthorizationDetail,
    AuthorizationDetailType.DATABASE.value: DatabaseAuthorizationDetail,
    AuthorizationDetailType.API.value: ApiAuthorizationDetail,
}


def _detail_tag(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("type_code") or value.get("type")
    return getattr(value, "type_code", None)


AuthorizationDetail = Annotated[
    Union[
        Annotated[McpAuthorizationDetail, Tag("mcp")],
        Annotated[FsAuthorizationDetail, Tag("fs")],
        Annotated[DatabaseAuthorizationDetail, Tag("database")],
        Annotated[ApiAuthorizationDetail, Tag("api")],
    ],
    Discriminator(_detail_tag),
]


def parse_authorization_detail(raw: dict[str, Any]) -> AuthorizationDetailBase:
    type_code = _detail_tag(raw)
    detail_cls = AUTHORIZATION_DETAIL_TYPES.get(type_code) if type_code else None
    if detail_cls is None:
        raise ValueError(f"Unsupported authorization detail type: {type_code!r}")
    return detail_cls.model_validate(raw)


def _frozen(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(sorted(value))
    return value


def _is_granted(claim: Claim) -> bool:
    if isinstance(claim, EssentialClaim):
        return True
    return bool(claim)


class AuthorizationDetailRecord(BaseModel):
    """A stored detail; owned by exactly one consent."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    consent_id: str
    grant_id: str
    request_id: str
    type_code: str
    identifier: str
    active: bool = True
    detail: AuthorizationDetail
    created_at: datetime
