"""Password hashing for stored user credentials (bcrypt over a SHA-256 pre-hash).

Bcrypt only looks at the first 72 bytes of its input; hashing the password
with SHA-256 first gives a fixed-length input so long passphrases are not
silently truncated. Only the resulting hash is stored (users.password_hash).
"""

import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def get_password_hash(password: str) -> str:
    """Return the bcrypt hash to store for password."""
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Return True if plain_password matches hashed_password; False for a missing or malformed hash."""
    if not hashed_password:
        return False
    try:
        return bool(
            bcrypt.checkpw(_prehash(plain_password), hashed_password.encode("utf-8"))
        )
    except (ValueError, TypeError):
        return False
