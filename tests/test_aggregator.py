import pytest

from grant_management.constants import OAuthErrorCode
from grant_management.core.exceptions import OAuthException
from grant_management.models.authorization_detail import parse_authorization_detail
from grant_management.services.authorization_detail_aggregator import (
    approve_details,
    merge_scopes,
    resets_grant,
    resolve_scope,
)


def test_merge_scopes_deduplicates_in_order():
    assert merge_scopes("openid profile", "profile email", None, "") == "openid profile email"


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        ("create", "workspace.fs admin"),
        ("replace", "workspace.fs admin"),
        ("merge", "openid profile workspace.fs admin"),
        ("update", "openid profile workspace.fs admin"),
    ],
)
def test_resolve_scope_per_action(action, expected):
    assert resolve_scope("openid profile", "workspace.fs admin", action) == expected


def test_resets_grant_only_for_create_and_replace():
    assert resets_grant("create")
    assert resets_grant("replace")
    assert not resets_grant("merge")
    assert not resets_grant("update")


def test_approve_details_defaults_to_everything_requested():
    requested = [parse_authorization_detail({"type": "mcp", "tools": {"a": {"essential": True}, "b": None}})]
    approved = approve_details(requested, None)
    assert approved[0].tools == {"a": True, "b": True}


def test_approve_details_accepts_narrower_set_with_essentials():
    requested = [parse_authorization_detail({"type": "mcp", "tools": {"a": {"essential": True}, "b": True}})]
    submitted = [parse_authorization_detail({"type": "mcp", "tools": {"a": {"essential": True}, "b": False}})]
    approved = approve_details(requested, submitted)
    assert approved[0].tools == {"a": True, "b": False}


def test_approve_details_rejects_missing_essential():
    requested = [parse_authorization_detail({"type": "fs", "permissions": {"read": {"essential": True}}})]
    submitted = [parse_authorization_detail({"type": "fs", "permissions": {"read": False}})]
    with pytest.raises(OAuthException) as exc_info:
        approve_details(requested, submitted)
    assert exc_info.value.error is OAuthErrorCode.CONSENT_REQUIRED
    assert "fs-0:read" in exc_info.value.description


def test_approve_details_rejects_dropped_detail_with_essentials():
    requested = [
        parse_authorization_detail({"type": "mcp", "identifier": "tools", "tools": {"a": {"essential": True}}})
    ]
    submitted = [parse_authorization_detail({"type": "mcp", "identifier": "other", "tools": {"a": True}})]
    with pytest.raises(OAuthException):
        approve_details(requested, submitted)


def _mcp(server, tools):
    return parse_authorization_detail({"type": "mcp", "server": server, "tools": tools})


def test_approve_details_rejects_dropping_essential_detail_for_another_server():
    requested = [
        _mcp("https://a.example.com", {"a": {"essential": True}}),
        _mcp("https://b.example.com", {"a": True}),
    ]
    submitted = [_mcp("https://b.example.com", {"a": True})]
    with pytest.raises(OAuthException) as exc_info:
        approve_details(requested, submitted)
    assert exc_info.value.error is OAuthErrorCode.CONSENT_REQUIRED
    assert "mcp-0:a" in exc_info.value.description


def test_approve_details_accepts_dropped_optional_detail():
    requested = [
        _mcp("https://a.example.com", {"x": True}),
        _mcp("https://b.example.com", {"t": {"essential": True}}),
    ]
    submitted = [_mcp("https://b.example.com", {"t": True})]
    approved = approve_details(requested, submitted)
    assert [detail.server for detail in approved] == ["https://b.example.com"]


def test_approve_details_matches_reordered_details():
    requested = [
        _mcp("https://a.example.com", {"x": {"essential": True}}),
        _mcp("https://b.example.com", {"t": {"essential": True}}),
    ]
    submitted = [
        _mcp("https://b.example.com", {"t": True}),
        _mcp("https://a.example.com", {"x": True}),
    ]
    approved = approve_details(requested, submitted)
    assert [detail.server for detail in approved] == [
        "https://b.example.com",
        "https://a.example.com",
    ]


def test_approve_details_rejects_unrequested_tool():
    requested = [_mcp("https://a.example.com", {"search": True})]
    submitted = [_mcp("https://a.example.com", {"search": True, "delete_all": True})]
    with pytest.raises(OAuthException) as exc_info:
        approve_details(requested, submitted)
    assert exc_info.value.error is OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS
    assert "tools.delete_all" in exc_info.value.description


def test_approve_details_rejects_unrequested_detail():
    requested = [_mcp("https://a.example.com", {"search": True})]
    submitted = [
        _mcp("https://a.example.com", {"search": True}),
        _mcp("https://evil.example.com", {"search": True}),
    ]
    with pytest.raises(OAuthException) as exc_info:
        approve_details(requested, submitted)
    assert exc_info.value.error is OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS


def test_approve_details_rejects_same_detail_twice():
    requested = [_mcp("https://a.example.com", {"search": True})]
    submitted = [
        _mcp("https://a.example.com", {"search": True}),
        _mcp("https://a.example.com", {"search": False}),
    ]
    with pytest.raises(OAuthException) as exc_info:
        approve_details(requested, submitted)
    assert exc_info.value.error is OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS


def test_approve_details_rejects_widened_actions():
    requested = [parse_authorization_detail({"type": "fs", "roots": ["/w"], "actions": ["read"]})]
    submitted = [parse_authorization_detail({"type": "fs", "roots": ["/w"], "actions": ["read", "write"]})]
    with pytest.raises(OAuthException) as exc_info:
        approve_details(requested, submitted)
    assert "actions" in exc_info.value.description
