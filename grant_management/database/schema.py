import logging

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS grants (
    id TEXT PRIMARY KEY,
    client_id TEXT NOT NULL,
    subject TEXT,
    actor TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    scope TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    revoked_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS authorization_requests (
    id TEXT PRIMARY KEY,
    grant_id TEXT NOT NULL REFERENCES grants(id),
    client_id TEXT NOT NULL,
    redirect_uri TEXT NOT NULL,
    response_type TEXT NOT NULL DEFAULT 'code',
    scope TEXT NOT NULL DEFAULT '',
    state TEXT,
    authorization_details JSONB NOT NULL DEFAULT '[]'::jsonb,
    grant_management_action TEXT NOT NULL,
    requested_actor TEXT,
    subject TEXT,
    code_challenge TEXT,
    code_challenge_method TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    expires_in INTEGER NOT NULL DEFAULT 90,
    consented_at TIMESTAMPTZ,
    code_used_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS consents (
    seq BIGSERIAL UNIQUE,
    id TEXT PRIMARY KEY,
    grant_id TEXT NOT NULL REFERENCES grants(id),
    request_id TEXT NOT NULL REFERENCES authorization_requests(id),
    subject TEXT NOT NULL,
    scope TEXT NOT NULL DEFAULT '',
    grant_management_action TEXT NOT NULL,
    previous_consent_id TEXT REFERENCES consents(id),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS consents_grant_id_idx ON consents (grant_id, seq);

CREATE TABLE IF NOT EXISTS authorization_details (
    seq BIGSERIAL UNIQUE,
    id TEXT PRIMARY KEY,
    consent_id TEXT NOT NULL REFERENCES consents(id),
    grant_id TEXT NOT NULL REFERENCES grants(id),
    request_id TEXT NOT NULL,
    type_code TEXT NOT NULL,
    identifier TEXT NOT NULL,
    active BOOLEAN NOT NULL DEFAULT TRUE,
    detail JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS authorization_details_type_idx
    ON authorization_details (type_code) WHERE active;

CREATE TABLE IF NOT EXISTS permissions (
    seq BIGSERIAL PRIMARY KEY,
    resource_identifier TEXT NOT NULL,
    grant_id TEXT NOT NULL REFERENCES grants(id),
    attribute TEXT NOT NULL,
    value TEXT NOT NULL,
    request_id TEXT
);

CREATE INDEX IF NOT EXISTS permissions_grant_idx ON permissions (grant_id, attribute);
CREATE INDEX IF NOT EXISTS permissions_resource_idx ON permissions (resource_identifier);
"""


async def apply_schema(conn: asyncpg.Connection) -> None:
    logger.info("Applying grant management schema")
    await conn.execute(SCHEMA_SQL)
