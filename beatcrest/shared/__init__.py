"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from beatcrest.shared.utils import (
    ensure_utc,
    generate_cuid,
    generate_license_id,
    utc_now,
)

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "generate_license_id",
    "utc_now",
]
