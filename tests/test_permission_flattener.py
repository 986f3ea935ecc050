import pytest

from grant_management.models.authorization_detail import parse_authorization_detail
from grant_management.services.permission_flattener import (
    flatten_authorization_detail,
    flatten_authorization_details,
    reconstruct_authorization_details,
)

GRANT_ID = "gnt_flatten"

DETAILS = [
    {
        "type": "mcp",
        "identifier": "mcp-main",
        "server": "https://mcp.example.com",
        "transport": "sse",
        "locations": ["https://mcp.example.com"],
        "tools": {"search": True, "delete": False},
    },
    {
        "type": "fs",
        "identifier": "workspace",
        "roots": ["/workspace", "/tmp"],
        "actions": ["read", "write"],
        "permissions": {"read": True, "write": True},
    },
    {
        "type": "database",
        "identifier": "crm",
        "databases": ["crm"],
        "schemas": ["public"],
        "tables": ["accounts", "contacts"],
        "actions": ["select"],
    },
    {
        "type": "api",
        "identifier": "billing",
        "urls": ["https://api.example.com/billing"],
        "protocols": ["https"],
        "actions": ["GET", "POST"],
    },
]


def _row_map(rows):
    return {(row.attribute, row.value) for row in rows}


def test_flatten_mcp_rows():
    detail = parse_authorization_detail(DETAILS[0])
    rows = flatten_authorization_detail(detail, GRANT_ID, request_id="req_1")

    assert {row.resource_identifier for row in rows} == {f"{GRANT_ID}:mcp-main"}
    assert all(row.grant_id == GRANT_ID and row.request_id == "req_1" for row in rows)
    assert _row_map(rows) == {
        ("type", "mcp"),
        ("locations", "https://mcp.example.com"),
        ("tool:search", "true"),
        ("tool:delete", "false"),
        ("server", "https://mcp.example.com"),
        ("transport", "sse"),
    }


def test_flatten_uses_index_when_identifier_missing():
    detail = parse_authorization_detail({"type": "fs", "roots": ["/a"]})
    rows = flatten_authorization_detail(detail, GRANT_ID, index=4)
    assert rows[0].resource_identifier == f"{GRANT_ID}:fs-4"


def test_flatten_essential_claims_become_true():
    detail = parse_authorization_detail({"type": "fs", "permissions": {"read": {"essential": True}}})
    rows = flatten_authorization_detail(detail, GRANT_ID)
    assert ("permission:read", "true") in _row_map(rows)


@pytest.mark.parametrize("raw", DETAILS, ids=[d["type"] for d in DETAILS])
def test_reconstruct_restores_each_detail_type(raw):
    detail = parse_authorization_detail(raw)
    rebuilt = reconstruct_authorization_details(flatten_authorization_detail(detail, GRANT_ID))

    assert len(rebuilt) == 1
    assert type(rebuilt[0]) is type(detail)
    original = detail.to_payload()
    restored = rebuilt[0].to_payload()
    for field, value in original.items():
        if isinstance(value, list):
            assert sorted(restored.get(field, [])) == sorted(value)
        elif value or value is False:
            assert restored.get(field) == value


def test_reconstruct_drops_empty_fields():
    detail = parse_authorization_detail({"type": "api", "identifier": "bare"})
    rebuilt = reconstruct_authorization_details(flatten_authorization_detail(detail, GRANT_ID))
    payload = rebuilt[0].to_payload()
    assert payload["identifier"] == "bare"
    assert payload["urls"] == []
    assert "server" not in payload


def test_reconstruct_groups_multiple_details():
    details = [parse_authorization_detail(raw) for raw in DETAILS]
    rows = flatten_authorization_details(details, GRANT_ID)
    rebuilt = reconstruct_authorization_details(rows)
    assert [d.identifier for d in rebuilt] == ["mcp-main", "workspace", "crm", "billing"]
    assert [d.type_code for d in rebuilt] == ["mcp", "fs", "database", "api"]
