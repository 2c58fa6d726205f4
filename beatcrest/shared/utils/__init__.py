"""Shared utilities: datetime and generators."""

from beatcrest.shared.utils.datetime import (
    ensure_utc,
    isoformat_utc,
    parse_timestamp,
    utc_now,
)
from beatcrest.shared.utils.generators import (
    LICENSE_ALPHABET,
    generate_cuid,
    generate_license_id,
)

__all__ = [
    "generate_cuid",
    "generate_license_id",
    "LICENSE_ALPHABET",
    "utc_now",
    "ensure_utc",
    "isoformat_utc",
    "parse_timestamp",
]
