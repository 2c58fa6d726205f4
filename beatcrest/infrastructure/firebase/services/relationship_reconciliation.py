"""Repair follow-graph and tenant-admin drift left by non-atomic writes.

follow()/unfollow() write the follower's `following` first and the
followee's `followers` second, as two requests. A failure between the two
leaves the documents out of step. This pass treats `following` as the
source of truth and rebuilds every `followers` list from it:

    expected followers(v) = {u : v in following(u), u and v both exist}

Entries missing from followers(v) are added with ArrayUnion, extra ones
removed with ArrayRemove. IDs in `following` that name a deleted user are
dropped, and so are tenant admin_ids that no longer resolve.

Writes are transforms, not list rewrites, so a follow that lands while the
pass runs is not lost.
"""

from __future__ import annotations

import logging
from typing import Any

from beatcrest.application.dtos.reconciliation import ReconciliationReport
from beatcrest.infrastructure.firebase._rest_client import (
    DocumentReference,
    FirestoreRESTClient,
)
from beatcrest.infrastructure.firebase._rest_encoding import ArrayRemove, ArrayUnion
from beatcrest.infrastructure.firebase.repositories.registry import Repositories
from beatcrest.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)

# Repairs are independent transforms, so they are committed in bounded chunks.
REPAIR_CHUNK_SIZE = 500


class RelationshipReconciliationService:
    """Scans users and tenants and commits the repairs in batches."""

    def __init__(self, client: FirestoreRESTClient, repositories: Repositories) -> None:
        self._client = client
        self._users = repositories.users
        self._tenants = repositories.tenants

    @traced("reconciliation.run")
    async def reconcile(self, dry_run: bool = False) -> ReconciliationReport:
        """Compute and (unless dry_run) apply every repair.

        Returns:
            ReconciliationReport with the counts per kind of repair.
        """
        report = ReconciliationReport(dry_run=dry_run)
        users = await self._users.find_all()
        tenants = await self._tenants.find_all()
        report.users_scanned = len(users)
        report.tenants_scanned = len(tenants)
        existing = {u["id"] for u in users}
        writes: list[tuple[DocumentReference, dict[str, Any]]] = []
        repaired: set[str] = set()

        expected: dict[str, list[str]] = {u["id"]: [] for u in users}
        for user in users:
            uid = user["id"]
            following = user.get("following") or []
            dangling = [v for v in following if v not in existing or v == uid]
            if dangling:
                report.dangling_removed += len(dangling)
                writes.append(self._user_write(uid, {"following": ArrayRemove(dangling)}))
                repaired.add(uid)
            for followee in following:
                if followee in existing and followee != uid:
                    expected[followee].append(uid)

        for user in users:
            uid = user["id"]
            actual = user.get("followers") or []
            wanted = list(dict.fromkeys(expected[uid]))
            missing = [f for f in wanted if f not in actual]
            stray = [f for f in dict.fromkeys(actual) if f not in wanted]
            if missing:
                report.followers_added += len(missing)
                writes.append(self._user_write(uid, {"followers": ArrayUnion(missing)}))
                repaired.add(uid)
            if stray:
                report.followers_removed += len(stray)
                writes.append(self._user_write(uid, {"followers": ArrayRemove(stray)}))
                repaired.add(uid)

        for tenant in tenants:
            gone = [a for a in tenant.get("admin_ids") or [] if a not in existing]
            if gone:
                report.admins_removed += len(gone)
                ref = self._client.document(self._tenants.reference(tenant["id"]))
                writes.append((ref, {"admin_ids": ArrayRemove(gone)}))

        report.repaired_user_ids = sorted(repaired)
        add_span_attributes(
            **{
                "reconciliation.users": report.users_scanned,
                "reconciliation.repairs": report.total_repairs,
                "reconciliation.dry_run": dry_run,
            }
        )
        if dry_run:
            logger.info(
                "Reconciliation dry run: %d repairs pending across %d users",
                report.total_repairs,
                len(repaired),
            )
            return report

        applied = await self._commit(writes)
        logger.info(
            "Reconciliation applied %d writes (%d repairs) across %d users",
            applied,
            report.total_repairs,
            len(repaired),
        )
        return report

    def _user_write(
        self, user_id: str, data: dict[str, Any]
    ) -> tuple[DocumentReference, dict[str, Any]]:
        return self._client.document(self._users.reference(user_id)), data

    async def _commit(self, writes: list[tuple[DocumentReference, dict[str, Any]]]) -> int:
        applied = 0
        for start in range(0, len(writes), REPAIR_CHUNK_SIZE):
            batch = self._client.batch()
            for ref, data in writes[start : start + REPAIR_CHUNK_SIZE]:
                batch.update(ref, data)
            applied += await batch.commit()
        return applied
