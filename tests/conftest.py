import json
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
from fastapi.testclient import TestClient

from grant_management.core.dependencies import get_store
from grant_management.core.settings import settings
from grant_management.main import app
from grant_management.repositories import InMemoryStore

CLIENT_ID = "agent-1"
REDIRECT_URI = "https://client.example.com/callback"
SUBJECT = "alice"
MCP_SERVER = "https://mcp.example.com"


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def client(store: InMemoryStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def mcp_detail(tools: dict[str, Any] | None = None, server: str = MCP_SERVER) -> dict[str, Any]:
    return {
        "type": "mcp",
        "server": server,
        "transport": "http",
        "tools": tools if tools is not None else {"search": True},
    }


def fs_detail() -> dict[str, Any]:
    return {
        "type": "fs",
        "roots": ["/workspace"],
        "actions": ["read", "write"],
        "permissions": {"read": True, "write": {"essential": False}},
    }


def push(client: TestClient, details: list[dict[str, Any]] | None = None, **params: Any) -> str:
    body: dict[str, Any] = {
        "response_type": "code",
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "scope": "openid profile",
        "authorization_details": json.dumps(details if details is not None else [mcp_detail()]),
    }
    body.update(params)
    response = client.post("/par", data=body)
    assert response.status_code == 201, response.text
    return response.json()["request_uri"].rsplit(":", 1)[-1]


def consent(client: TestClient, request_id: str, subject: str = SUBJECT, **body: Any):
    return client.put(
        f"/AuthorizationRequests/{request_id}/consent",
        json={"subject": subject, "request_ID": request_id, **body},
        follow_redirects=False,
    )


def authorize_grant(
    client: TestClient,
    details: list[dict[str, Any]] | None = None,
    subject: str = SUBJECT,
    **params: Any,
) -> str:
    """Push and consent a request; returns the request id (the code)."""
    request_id = push(client, details, **params)
    response = consent(client, request_id, subject)
    assert response.status_code == 301, response.text
    return request_id


def caller_token(client_id: str | None = None, subject: str | None = None, expires_in: int = 300) -> str:
    """Sign a caller token with the configured secret."""
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {"iat": now, "exp": now + timedelta(seconds=expires_in)}
    if subject:
        payload["sub"] = subject
    if client_id:
        payload["client_id"] = client_id
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
