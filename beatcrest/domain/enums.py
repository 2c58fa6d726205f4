"""Domain enumerations for BeatCrest.

Enums represent fixed sets of domain values (account types, purchase status).
"""

from enum import Enum


class AccountType(str, Enum):
    """Kind of account a user registered with."""

    PRODUCER = "producer"
    ARTIST = "artist"
    FAN = "fan"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid account type values as strings."""
        return [account_type.value for account_type in cls]


class PurchaseStatus(str, Enum):
    """Purchase payment lifecycle.

    Purchases start PENDING and move to COMPLETED or FAILED once the
    payment provider reports back.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [status.value for status in cls]
