import secrets

REQUEST_URI_PREFIX = "urn:ietf:params:oauth:request_uri:"


def generate_id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(12)}"


def generate_grant_id() -> str:
    return generate_id("gnt")


def generate_access_token(grant_id: str) -> str:
    return f"at_{secrets.token_urlsafe(24)}:{grant_id}"


def build_request_uri(request_id: str) -> str:
    return f"{REQUEST_URI_PREFIX}{request_id}"


def parse_request_uri(request_uri: str) -> str:
    # bare ids are accepted as well as full URNs
    return request_uri.rsplit(":", 1)[-1].strip()
