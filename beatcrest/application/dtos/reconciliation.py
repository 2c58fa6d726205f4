"""DTOs for the relationship reconciliation pass."""

from dataclasses import dataclass, field


@dataclass
class ReconciliationReport:
    """Counts of repairs made (or, in dry-run mode, that would be made).

    followers_added: followers entries added to match someone's following.
    followers_removed: followers entries with no matching following entry.
    dangling_removed: following IDs dropped because that user no longer exists.
    admins_removed: tenant admin_ids dropped for missing users.
    """

    users_scanned: int = 0
    tenants_scanned: int = 0
    followers_added: int = 0
    followers_removed: int = 0
    dangling_removed: int = 0
    admins_removed: int = 0
    dry_run: bool = False
    repaired_user_ids: list[str] = field(default_factory=list)

    @property
    def total_repairs(self) -> int:
        return (
            self.followers_added
            + self.followers_removed
            + self.dangling_removed
            + self.admins_removed
        )
