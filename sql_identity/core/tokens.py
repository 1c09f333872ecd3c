# sql_identity/core/tokens.py
import base64
import secrets

from sql_identity.core.errors import TokenNotSet

TOKEN_BYTES = 24


def generate_token() -> str:
    """24 random bytes, standard base64 (32 characters, no padding needed)."""
    return base64.b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii")


def header_value(token: str) -> str:
    """Return the token unchanged if it can travel as an HTTP header value."""
    try:
        token.encode("latin-1")
    except UnicodeEncodeError as e:
        raise TokenNotSet() from e
    if not token or any(ord(c) < 0x20 or ord(c) == 0x7F for c in token):
        raise TokenNotSet()
    return token


def mask(token: str | None) -> str:
    if not token:
        return "-"
    return f"{token[:6]}..."
