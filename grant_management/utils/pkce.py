import base64
import hashlib
import secrets

SUPPORTED_METHODS = ("S256", "plain")


def s256_challenge(code_verifier: str) -> str:
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def verify_code_verifier(code_verifier: str, code_challenge: str, method: str | None) -> bool:
    if method == "S256":
        expected = s256_challenge(code_verifier)
    elif method in (None, "plain"):
        expected = code_verifier
    else:
        return False
    return secrets.compare_digest(expected, code_challenge)
