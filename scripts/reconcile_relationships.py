"""Repair follow-graph and tenant-admin drift in Firestore.

Usage:
    python -m scripts.reconcile_relationships [--dry-run]
With --dry-run, prints the repairs that would be made without writing.
Requires FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH.
"""

import asyncio
import sys

from beatcrest.infrastructure.firebase import (
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from beatcrest.infrastructure.firebase.repositories import build_repositories
from beatcrest.infrastructure.firebase.services import RelationshipReconciliationService
from beatcrest.shared.telemetry import setup_logging


async def main() -> None:
    """Run one reconciliation pass and print the report."""
    setup_logging()
    dry_run = "--dry-run" in sys.argv[1:]
    if not init_firebase():
        print("Firestore not configured", file=sys.stderr)
        sys.exit(1)
    client = get_firestore_client()
    try:
        service = RelationshipReconciliationService(client, build_repositories(client))
        report = await service.reconcile(dry_run=dry_run)
    finally:
        await close_firebase()

    mode = "Would repair" if report.dry_run else "Repaired"
    print(f"Scanned {report.users_scanned} user(s), {report.tenants_scanned} tenant(s)")
    print(f"  followers added:   {report.followers_added}")
    print(f"  followers removed: {report.followers_removed}")
    print(f"  dangling removed:  {report.dangling_removed}")
    print(f"  admins removed:    {report.admins_removed}")
    print(f"{mode} {report.total_repairs} entr(ies) on {len(report.repaired_user_ids)} user(s)")


if __name__ == "__main__":
    asyncio.run(main())
