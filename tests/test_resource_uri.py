import pytest

from grant_management.utils.pkce import s256_challenge, verify_code_verifier
from grant_management.utils.resource_uri import extract_resource_type, extract_server_location


@pytest.mark.parametrize(
    ("resource_id", "location", "resource_type"),
    [
        ("https://mcp.example.com/tools/search", "https://mcp.example.com", "search"),
        ("https://files.example.com:8443/fs", "https://files.example.com:8443", "fs"),
        ("https://api.example.com", "https://api.example.com", "default"),
        ("https://api.example.com/", "https://api.example.com", "default"),
        ("search", "search", "search"),
    ],
)
def test_resource_uri_parts(resource_id, location, resource_type):
    assert extract_server_location(resource_id) == location
    assert extract_resource_type(resource_id) == resource_type


def test_pkce_s256_matches_rfc_example():
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    assert s256_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
    assert verify_code_verifier(verifier, s256_challenge(verifier), "S256")
    assert not verify_code_verifier("wrong", s256_challenge(verifier), "S256")


def test_pkce_plain():
    assert verify_code_verifier("abc", "abc", "plain")
    assert verify_code_verifier("abc", "abc", None)
    assert not verify_code_verifier("abc", "abc", "unknown")
