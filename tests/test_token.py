from grant_management.utils.pkce import s256_challenge

from tests.conftest import CLIENT_ID, REDIRECT_URI, authorize_grant, mcp_detail, push


def _exchange(client, code, **overrides):
    body = {
        "grant_type": "authorization_code",
        "code": code,
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
    }
    body.update(overrides)
    return client.post("/token", data=body)


def test_exchange_returns_grant_view(client):
    code = authorize_grant(
        client, [mcp_detail({"search": True})], grant_id="gnt_token", scope="openid profile", requested_actor="bot"
    )
    response = _exchange(client, code)
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "Bearer"
    assert body["expires_in"] == 3600
    assert body["scope"] == "openid profile"
    assert body["grant_id"] == "gnt_token"
    assert body["actor"] == "bot"
    assert body["access_token"].startswith("at_")
    assert body["access_token"].endswith(":gnt_token")
    assert body["authorization_details"][0]["type"] == "mcp"
    assert body["authorization_details"][0]["tools"] == {"search": True}


def test_unsupported_grant_type(client):
    code = authorize_grant(client)
    for grant_type in ("client_credentials", "refresh_token", ""):
        response = _exchange(client, code, grant_type=grant_type)
        assert response.status_code == 400
        assert response.json()["error"] == "unsupported_grant_type"


def test_unknown_code_is_invalid_grant(client):
    response = _exchange(client, "req_does_not_exist")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


def test_code_is_single_use(client):
    code = authorize_grant(client)
    assert _exchange(client, code).status_code == 200

    response = _exchange(client, code)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


def test_code_without_consent_is_invalid_grant(client):
    code = push(client)
    response = _exchange(client, code)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


def test_code_bound_to_client_and_redirect_uri(client):
    code = authorize_grant(client)
    assert _exchange(client, code, client_id="other").json()["error"] == "invalid_grant"
    assert _exchange(client, code, redirect_uri="https://evil.example").json()["error"] == "invalid_grant"
    # failed attempts do not consume the code
    assert _exchange(client, code).status_code == 200


def test_pkce_s256(client):
    verifier = "a" * 43
    code = authorize_grant(
        client, code_challenge=s256_challenge(verifier), code_challenge_method="S256"
    )
    assert _exchange(client, code).json()["error"] == "invalid_grant"
    assert _exchange(client, code, code_verifier="b" * 43).json()["error"] == "invalid_grant"
    assert _exchange(client, code, code_verifier=verifier).status_code == 200


def test_revoked_grant_cannot_be_exchanged(client):
    code = authorize_grant(client, grant_id="gnt_revoked")
    assert client.delete("/grants/gnt_revoked").status_code == 204

    response = _exchange(client, code)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


def test_token_json_body(client):
    code = authorize_grant(client)
    response = client.post(
        "/token", json={"grant_type": "authorization_code", "code": code, "client_id": CLIENT_ID}
    )
    assert response.status_code == 200
