"""Security helpers: password hashing."""

from beatcrest.infrastructure.security.password import (
    get_password_hash,
    verify_password,
)

__all__ = ["get_password_hash", "verify_password"]
