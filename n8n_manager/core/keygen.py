"""Random secret generation for n8n configuration."""

import base64
import secrets
from dataclasses import dataclass


SECRET_BYTES = 32
PASSWORD_BYTES = 16


@dataclass
class GeneratedKeys:
    """A fresh pair of n8n secrets."""
    encryption_key: str
    jwt_secret: str


def generate_secret(num_bytes: int = SECRET_BYTES) -> str:
    """Return num_bytes of cryptographically secure randomness, base64 encoded."""
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


def generate_password() -> str:
    """Generate a random database password."""
    return generate_secret(PASSWORD_BYTES)


def generate_keys() -> GeneratedKeys:
    """Generate an encryption key and a JWT secret."""
    return GeneratedKeys(
        encryption_key=generate_secret(),
        jwt_secret=generate_secret(),
    )
