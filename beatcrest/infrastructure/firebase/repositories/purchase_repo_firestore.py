"""Firestore-backed purchase repository (licenses issued per purchase)."""

from __future__ import annotations

import asyncio
from typing import Any

from beatcrest.core.config import get_settings
from beatcrest.domain.enums import PurchaseStatus
from beatcrest.domain.exceptions import ValidationException
from beatcrest.infrastructure.firebase._rest_client import FirestoreRESTClient
from beatcrest.infrastructure.firebase._rest_encoding import SERVER_TIMESTAMP
from beatcrest.infrastructure.firebase.collections import COLLECTION_PURCHASES
from beatcrest.infrastructure.firebase.records import Record
from beatcrest.infrastructure.firebase.references import DocumentPath
from beatcrest.infrastructure.firebase.repositories._base import (
    FirestoreRepository,
    user_ref,
)
from beatcrest.infrastructure.firebase.repositories.beat_repo_firestore import (
    FirestoreBeatRepository,
)
from beatcrest.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
    public_profile,
)
from beatcrest.shared.utils.generators import generate_license_id

PARTY_FIELDS = ("beat", "buyer", "seller")

# completed is terminal (re-completing is a no-op); a failed payment may be
# retried, either back to pending or straight to completed.
_ALLOWED_TRANSITIONS: dict[PurchaseStatus, frozenset[PurchaseStatus]] = {
    PurchaseStatus.PENDING: frozenset({PurchaseStatus.COMPLETED, PurchaseStatus.FAILED}),
    PurchaseStatus.FAILED: frozenset({PurchaseStatus.PENDING, PurchaseStatus.COMPLETED}),
    PurchaseStatus.COMPLETED: frozenset({PurchaseStatus.COMPLETED}),
}


def _status(value: Any) -> PurchaseStatus:
    try:
        return PurchaseStatus(value)
    except ValueError:
        raise ValidationException(
            f"status must be one of {PurchaseStatus.values()}", field="status"
        ) from None


class FirestorePurchaseRepository(FirestoreRepository):
    """Purchase repository using Firestore.

    license_id is generated here at creation, before the document is
    written, and is never changed afterwards.
    """

    collection_name = COLLECTION_PURCHASES

    def __init__(
        self,
        client: FirestoreRESTClient,
        beats: FirestoreBeatRepository,
        users: FirestoreUserRepository,
        license_prefix: str | None = None,
    ) -> None:
        super().__init__(client)
        self._beats = beats
        self._users = users
        self._license_prefix = license_prefix or get_settings().license_prefix

    def _to_refs(self, data: dict[str, Any]) -> dict[str, Any]:
        out = dict(data)
        if isinstance(out.get("beat"), str):
            out["beat"] = self._beats.reference(out["beat"])
        for name in ("buyer", "seller"):
            if isinstance(out.get(name), str):
                out[name] = user_ref(out[name])
        return out

    async def create(self, data: dict[str, Any]) -> Record:
        """Record a pending purchase of data["beat"] by data["buyer"] from data["seller"].

        Amount fields (amount, platform_fee, seller_amount) are stored as given.

        Raises:
            ValidationException: a party ID is missing or an amount is negative.
        """
        for name in PARTY_FIELDS:
            if not data.get(name) or not isinstance(data[name], str):
                raise ValidationException(f"{name} is required", field=name)
        for name in ("amount", "platform_fee", "seller_amount"):
            value = data.get(name)
            if value is not None and (
                isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0
            ):
                raise ValidationException(f"{name} must be non-negative", field=name)
        return await self._insert({
            **self._to_refs(data),
            "license_id": generate_license_id(self._license_prefix),
            "status": PurchaseStatus.PENDING.value,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })

    async def find_by_id(self, purchase_id: str) -> Record | None:
        return await self._load(purchase_id)

    async def _find_by_party(
        self, field: str, ref: DocumentPath, status: PurchaseStatus | str | None
    ) -> list[Record]:
        wanted = _status(status).value if status is not None else None

        def build():
            query = self._coll.where(field, "==", ref)
            if wanted is not None:
                query = query.where("status", "==", wanted)
            return query

        return await self._ordered(
            build,
            "created_at",
            descending=True,
            fallback=lambda: self._coll.where(field, "==", ref),
            keep=lambda r: wanted is None or r.get("status") == wanted,
        )

    async def find_by_buyer(
        self, buyer_id: str, status: PurchaseStatus | str | None = None
    ) -> list[Record]:
        """Purchases made by buyer_id, newest first, optionally only one status."""
        return await self._find_by_party("buyer", user_ref(buyer_id), status)

    async def find_by_seller(
        self, seller_id: str, status: PurchaseStatus | str | None = None
    ) -> list[Record]:
        """Sales made by seller_id, newest first, optionally only one status."""
        return await self._find_by_party("seller", user_ref(seller_id), status)

    async def has_completed_purchase(self, buyer_id: str, beat_id: str) -> bool:
        """True if buyer_id already owns a completed license for beat_id."""
        query = (
            self._coll.where("buyer", "==", user_ref(buyer_id))
            .where("beat", "==", self._beats.reference(beat_id))
            .where("status", "==", PurchaseStatus.COMPLETED.value)
            .limit(1)
        )
        return bool(await query.get())

    async def update(self, purchase_id: str, updates: dict[str, Any]) -> Record | None:
        """Patch a purchase (status transition, download_url, ...). None if it does not exist.

        Raises:
            ValidationException: the patch touches license_id, names an unknown
                status, or asks for a status move the lifecycle does not allow.
        """
        if "license_id" in updates:
            raise ValidationException(
                "license_id is issued once and cannot be changed", field="license_id"
            )
        data = self._to_refs(updates)
        if "status" in data:
            target = _status(data["status"])
            current = await self.find_by_id(purchase_id)
            if current is None:
                return None
            if target not in _ALLOWED_TRANSITIONS[_status(current.get("status"))]:
                raise ValidationException(
                    f"Cannot move purchase from {current.get('status')} to {target.value}",
                    field="status",
                )
            data["status"] = target.value
        return await self._patch(purchase_id, data)

    async def with_details(self, purchases: list[Record]) -> list[Record]:
        """Attach the beat record and buyer/seller public profiles to each purchase.

        Lookups for all rows run concurrently; parties that no longer
        resolve keep their bare IDs.
        """
        beat_ids = list(dict.fromkeys(p["beat"] for p in purchases if p.get("beat")))
        user_ids = list(
            dict.fromkeys(
                p[name] for p in purchases for name in ("buyer", "seller") if p.get(name)
            )
        )
        beats, users = await asyncio.gather(
            asyncio.gather(*(self._beats.find_by_id(bid) for bid in beat_ids)),
            asyncio.gather(*(self._users.find_by_id(uid) for uid in user_ids)),
        )
        beat_by_id = {b["id"]: b for b in beats if b is not None}
        profile_by_id = {u["id"]: public_profile(u).to_dict() for u in users if u is not None}
        return [
            {
                **p,
                "beat": beat_by_id.get(p.get("beat"), p.get("beat")),
                "buyer": profile_by_id.get(p.get("buyer"), p.get("buyer")),
                "seller": profile_by_id.get(p.get("seller"), p.get("seller")),
            }
            for p in purchases
        ]
