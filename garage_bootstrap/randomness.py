"""Random secrets for the generated server configuration."""

import base64
import secrets


def random_hex(n: int) -> str:
    """Return n random bytes encoded as lowercase hex."""
    return secrets.token_hex(n)


def random_base64(n: int) -> str:
    """Return n random bytes encoded as standard padded base64."""
    return base64.b64encode(secrets.token_bytes(n)).decode("ascii")
