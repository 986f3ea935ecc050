import json

from tests.conftest import (
    CLIENT_ID,
    REDIRECT_URI,
    SUBJECT,
    authorize_grant,
    consent,
    fs_detail,
    mcp_detail,
    push,
)


def _grant(client, grant_id):
    response = client.get(f"/grants/{grant_id}")
    assert response.status_code == 200
    return response.json()


def test_consent_redirects_with_code(client):
    request_id = push(client, state="xyz")
    response = consent(client, request_id)
    assert response.status_code == 301
    assert response.headers["location"] == f"{REDIRECT_URI}?code={request_id}&state=xyz"


def test_consent_approves_requested_details_when_none_posted(client):
    authorize_grant(
        client, [mcp_detail({"search": {"essential": True}, "delete": None})], grant_id="gnt_all"
    )
    grant = _grant(client, "gnt_all")
    assert grant["subject"] == SUBJECT
    assert grant["authorization_details"][0]["tools"] == {"search": True, "delete": True}


def test_merge_is_additive(client):
    authorize_grant(client, [mcp_detail()], grant_id="gnt_merge", scope="openid profile")
    authorize_grant(
        client,
        [fs_detail()],
        grant_id="gnt_merge",
        scope="workspace.fs admin",
        grant_management_action="merge",
    )

    grant = _grant(client, "gnt_merge")
    assert grant["scope"] == "openid profile workspace.fs admin"
    assert [d["type"] for d in grant["authorization_details"]] == ["mcp", "fs"]


def test_update_behaves_like_merge(client):
    authorize_grant(client, [mcp_detail()], grant_id="gnt_update", scope="openid")
    authorize_grant(
        client, [mcp_detail()], grant_id="gnt_update", scope="openid email", grant_management_action="update"
    )
    grant = _grant(client, "gnt_update")
    assert grant["scope"] == "openid email"
    assert len(grant["authorization_details"]) == 2


def test_replace_discards_previous_scope_and_details(client):
    authorize_grant(
        client,
        [mcp_detail(), fs_detail()],
        grant_id="gnt_replace",
        scope="openid profile email calendar",
    )
    authorize_grant(
        client,
        [mcp_detail({"read_only": True})],
        grant_id="gnt_replace",
        scope="openid profile",
        grant_management_action="replace",
    )

    grant = _grant(client, "gnt_replace")
    assert set(grant["scope"].split()) == {"openid", "profile"}
    assert "email" not in grant["scope"]
    assert "calendar" not in grant["scope"]
    assert len(grant["authorization_details"]) == 1
    assert grant["authorization_details"][0]["tools"] == {"read_only": True}
    # history is kept on the consents
    assert len(grant["consents"][0]["authorization_details"]) == 2
    assert grant["consents"][1]["previous_consent_id"] == grant["consents"][0]["id"]


def test_consent_chain_links_previous_consent(client):
    for _ in range(3):
        authorize_grant(client, grant_id="gnt_chain")

    consents = _grant(client, "gnt_chain")["consents"]
    assert len(consents) == 3
    assert consents[0]["previous_consent_id"] is None
    assert consents[1]["previous_consent_id"] == consents[0]["id"]
    assert consents[2]["previous_consent_id"] == consents[1]["id"]


def test_consent_narrows_requested_details(client):
    request_id = push(client, [mcp_detail({"search": True, "delete": True})], grant_id="gnt_narrow")
    response = consent(
        client,
        request_id,
        authorization_details=[mcp_detail({"search": True, "delete": False})],
        scope="openid",
    )
    assert response.status_code == 301

    grant = _grant(client, "gnt_narrow")
    assert grant["scope"] == "openid"
    assert grant["authorization_details"][0]["tools"] == {"search": True, "delete": False}


def test_consent_without_essential_entry_is_rejected(client):
    request_id = push(client, [mcp_detail({"search": {"essential": True}, "delete": True})])
    response = consent(client, request_id, authorization_details=[mcp_detail({"delete": True})])
    assert response.status_code == 400
    assert response.json()["error"] == "consent_required"

    # the request stays usable after a rejected submission
    response = consent(client, request_id)
    assert response.status_code == 301


def test_consent_dropping_essential_detail_is_rejected(client):
    server_a = mcp_detail({"a": {"essential": True}}, server="https://a.example.com")
    server_b = mcp_detail({"a": True}, server="https://b.example.com")
    request_id = push(client, [server_a, server_b])

    response = consent(client, request_id, authorization_details=[server_b])
    assert response.status_code == 400
    assert response.json()["error"] == "consent_required"


def test_consent_dropping_optional_detail_is_accepted(client):
    server_a = mcp_detail({"x": True}, server="https://a.example.com")
    server_b = mcp_detail({"t": {"essential": True}}, server="https://b.example.com")
    request_id = push(client, [server_a, server_b], grant_id="gnt_drop")

    response = consent(
        client,
        request_id,
        authorization_details=[mcp_detail({"t": True}, server="https://b.example.com")],
    )
    assert response.status_code == 301
    details = _grant(client, "gnt_drop")["authorization_details"]
    assert [d["server"] for d in details] == ["https://b.example.com"]


def test_consent_cannot_widen_requested_details(client):
    request_id = push(client, [mcp_detail({"search": True})], grant_id="gnt_wide")
    response = consent(
        client,
        request_id,
        authorization_details=[
            mcp_detail({"search": True, "delete_all": True}),
            mcp_detail({"search": True}, server="https://evil.example.com"),
        ],
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_authorization_details"
    assert _grant(client, "gnt_wide")["authorization_details"] == []

    response = consent(
        client,
        request_id,
        authorization_details=[mcp_detail({"search": True}, server="https://evil.example.com")],
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_authorization_details"


def test_consent_accepts_form_encoded_detail_list(client):
    request_id = push(client, [mcp_detail({"search": True})], grant_id="gnt_form")
    response = client.put(
        f"/AuthorizationRequests/{request_id}/consent",
        data={
            "subject": SUBJECT,
            "request_ID": request_id,
            "authorization_details[]": [json.dumps(mcp_detail({"search": True}))],
        },
        follow_redirects=False,
    )
    assert response.status_code == 301
    assert _grant(client, "gnt_form")["authorization_details"][0]["tools"] == {"search": True}


def test_consent_twice_is_rejected(client):
    request_id = authorize_grant(client)
    response = consent(client, request_id)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request_uri"


def test_consent_requires_subject(client):
    request_id = push(client)
    response = client.put(
        f"/AuthorizationRequests/{request_id}/consent", json={}, follow_redirects=False
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"


def test_consent_by_other_subject_than_bound_is_forbidden(client):
    request_id = push(client, subject=SUBJECT)
    response = consent(client, request_id, subject="mallory")
    assert response.status_code == 403
    assert response.json()["error"] == "access_denied"


def test_consent_client_mismatch(client):
    request_id = push(client)
    response = consent(client, request_id, client_id="other-client")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"


def test_consent_unknown_request(client):
    response = consent(client, "req_missing")
    assert response.status_code == 404


def test_permissions_are_rebuilt_after_consent(client):
    authorize_grant(client, [mcp_detail({"search": True})], grant_id="gnt_rows")
    authorize_grant(
        client,
        [fs_detail()],
        grant_id="gnt_rows",
        grant_management_action="replace",
    )

    response = client.get("/grants/gnt_rows/permissions")
    rows = response.json()["permissions"]
    assert {row["value"] for row in rows if row["attribute"] == "type"} == {"fs"}
    assert all(row["grant_id"] == "gnt_rows" for row in rows)
    assert CLIENT_ID not in {row["value"] for row in rows}
