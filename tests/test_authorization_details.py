import pytest
from pydantic import TypeAdapter

from grant_management.models.authorization_detail import (
    AuthorizationDetail,
    DatabaseAuthorizationDetail,
    EssentialClaim,
    FsAuthorizationDetail,
    McpAuthorizationDetail,
    parse_authorization_detail,
)


def test_parse_dispatches_on_type():
    detail = parse_authorization_detail({"type": "mcp", "server": "https://s", "tools": {"a": True}})
    assert isinstance(detail, McpAuthorizationDetail)
    assert detail.type_code == "mcp"

    detail = parse_authorization_detail({"type": "database", "databases": ["crm"]})
    assert isinstance(detail, DatabaseAuthorizationDetail)
    assert detail.databases == ["crm"]


def test_parse_rejects_unknown_type():
    with pytest.raises(ValueError, match="Unsupported authorization detail type"):
        parse_authorization_detail({"type": "printer"})


def test_essential_claims_are_parsed():
    detail = parse_authorization_detail(
        {"type": "fs", "permissions": {"read": {"essential": True}, "write": False, "exec": None}}
    )
    assert isinstance(detail.permissions["read"], EssentialClaim)
    assert detail.essential_entries() == {"read"}
    assert detail.granted_entries() == {"read"}


def test_normalized_turns_claims_into_booleans():
    detail = parse_authorization_detail(
        {"type": "mcp", "tools": {"a": {"essential": True}, "b": True, "c": None}}
    )
    assert detail.normalized().tools == {"a": True, "b": True, "c": False}
    assert detail.approve_all().tools == {"a": True, "b": True, "c": True}


def test_key_falls_back_to_type_and_index():
    assert parse_authorization_detail({"type": "api"}).key(3) == "api-3"
    assert parse_authorization_detail({"type": "api", "identifier": "crm"}).key(3) == "crm"


def test_mcp_permits_ignores_action_and_checks_tool():
    detail = McpAuthorizationDetail(server="S", tools={"T": True, "U": False})
    assert detail.matches_location("S")
    assert not detail.matches_location("other")
    assert detail.permits("tools/call", "T")
    assert not detail.permits("tools/call", "U")
    assert not detail.permits("tools/call", "missing")


def test_non_mcp_permits_requires_action_and_resource():
    detail = FsAuthorizationDetail(
        locations=["https://files.example.com"], actions=["read"], resources=["report.txt"]
    )
    assert detail.matches_location("https://files.example.com")
    assert detail.permits("read", "report.txt")
    assert not detail.permits("write", "report.txt")
    assert not detail.permits("read", "secret.txt")


def test_union_serializes_variant_fields_with_type_alias():
    adapter = TypeAdapter(list[AuthorizationDetail])
    details = adapter.validate_python([{"type": "fs", "roots": ["/srv"]}, {"type": "mcp"}])
    dumped = adapter.dump_python(details, mode="json", by_alias=True, exclude_none=True)
    assert dumped[0]["type"] == "fs"
    assert dumped[0]["roots"] == ["/srv"]
    assert dumped[1]["type"] == "mcp"
