"""ID and value generators (CUID document IDs, license identifiers)."""

import secrets
import string
from datetime import datetime

from cuid2 import cuid_wrapper

from beatcrest.shared.utils.datetime import ensure_utc, utc_now

cuid_generator = cuid_wrapper()

LICENSE_ALPHABET = string.ascii_uppercase + string.digits
LICENSE_SUFFIX_LENGTH = 5


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_license_id(prefix: str, issued_at: datetime | None = None) -> str:
    """Generate a human-facing license identifier: PREFIX-YYYYMMDD-RRRRR.

    Args:
        prefix: License prefix (e.g. "BC").
        issued_at: Issue time; defaults to now. The date segment is its UTC date.

    Returns:
        License identifier such as "BC-20240125-A1B2C".
    """
    issued = ensure_utc(issued_at) or utc_now()
    suffix = "".join(
        secrets.choice(LICENSE_ALPHABET) for _ in range(LICENSE_SUFFIX_LENGTH)
    )
    return f"{prefix}-{issued:%Y%m%d}-{suffix}"
