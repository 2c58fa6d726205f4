"""Firestore-backed beat repository: catalog listing, soft delete, likes.

find_many() runs a fixed pipeline and the order of its steps decides which
beats land on a given page:

    store filters (ordered created_at desc)
      -> producer enrichment
      -> in-memory text search
      -> page slice

Text search and pagination happen in memory over the whole filtered set,
so their cost grows with the number of beats matching the store filters,
not with the page size. That size is recorded on the current span.
"""

from __future__ import annotations

import asyncio
from typing import Any

from beatcrest.application.dtos.beat import BeatFilters, LikeResult
from beatcrest.core.config import get_settings
from beatcrest.domain.exceptions import ResourceNotFoundException, ValidationException
from beatcrest.infrastructure.firebase._rest_client import FirestoreRESTClient, _Query
from beatcrest.infrastructure.firebase._rest_encoding import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    Increment,
)
from beatcrest.infrastructure.firebase.collections import COLLECTION_BEATS
from beatcrest.infrastructure.firebase.records import Record
from beatcrest.infrastructure.firebase.repositories._base import (
    FirestoreRepository,
    user_ref,
)
from beatcrest.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
    public_profile,
)
from beatcrest.shared.telemetry.tracing import add_span_attributes, traced

SEARCH_FIELDS = ("title", "description", "genre")


def _check_price(data: dict[str, Any]) -> None:
    if "price" not in data:
        return
    price = data["price"]
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
        raise ValidationException("price must be a non-negative number", field="price")


def _matches_filters(beat: Record, filters: BeatFilters) -> bool:
    """In-memory equivalent of the store filters (used when the index is missing)."""
    if beat.get("is_deleted") is not False:
        return False
    if filters.genre and beat.get("genre") != filters.genre:
        return False
    price = beat.get("price")
    if filters.min_price is not None and (price is None or price < float(filters.min_price)):
        return False
    if filters.max_price is not None and (price is None or price > float(filters.max_price)):
        return False
    if filters.bpm and beat.get("bpm") != int(filters.bpm):
        return False
    if filters.producer_id and beat.get("producer") != filters.producer_id:
        return False
    return True


def _matches_search(beat: Record, term: str) -> bool:
    return any(
        isinstance(beat.get(name), str) and term in beat[name].lower()
        for name in SEARCH_FIELDS
    )


class FirestoreBeatRepository(FirestoreRepository):
    """Beat repository using Firestore. Producer lookups go through the user repository."""

    collection_name = COLLECTION_BEATS

    def __init__(
        self, client: FirestoreRESTClient, users: FirestoreUserRepository
    ) -> None:
        super().__init__(client)
        self._users = users

    async def create(self, data: dict[str, Any]) -> Record:
        """Store a new beat for data["producer"] (a user ID).

        play_count starts at 0, likes empty, is_deleted False.

        Raises:
            ValidationException: missing producer or title, or negative price.
        """
        producer_id = data.get("producer")
        if not producer_id or not isinstance(producer_id, str):
            raise ValidationException("producer is required", field="producer")
        if not data.get("title"):
            raise ValidationException("title is required", field="title")
        _check_price(data)
        return await self._insert({
            **data,
            "producer": user_ref(producer_id),
            "tags": list(data.get("tags") or []),
            "play_count": 0,
            "likes": [],
            "is_deleted": False,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })

    async def find_by_id(self, beat_id: str) -> Record | None:
        """Return beat by ID (soft-deleted beats included; listings exclude them)."""
        return await self._load(beat_id)

    def _listing_query(self, filters: BeatFilters) -> _Query:
        query = self._coll.where("is_deleted", "==", False)
        if filters.genre:
            query = query.where("genre", "==", filters.genre)
        if filters.min_price is not None:
            query = query.where("price", ">=", float(filters.min_price))
        if filters.max_price is not None:
            query = query.where("price", "<=", float(filters.max_price))
        if filters.bpm:
            query = query.where("bpm", "==", int(filters.bpm))
        if filters.producer_id:
            query = query.where("producer", "==", user_ref(filters.producer_id))
        return query

    @traced("beats.find_many")
    async def find_many(
        self,
        filters: BeatFilters | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> list[Record]:
        """List non-deleted beats, newest first, with producer profiles attached.

        Args:
            filters: Store filters plus optional search term.
            page: 1-based page number.
            limit: Page size (default settings.default_page_size); the result
                never has more items.
        """
        if limit is None:
            limit = get_settings().default_page_size
        if page < 1 or limit < 1:
            raise ValidationException("page and limit must be >= 1", field="page")
        filters = filters or BeatFilters()
        beats = await self._ordered(
            lambda: self._listing_query(filters),
            "created_at",
            descending=True,
            fallback=lambda: self._coll.where("is_deleted", "==", False),
            keep=lambda beat: _matches_filters(beat, filters),
        )
        beats = await self.with_producers(beats)
        filtered_count = len(beats)
        if filters.search:
            term = filters.search.lower()
            beats = [b for b in beats if _matches_search(b, term)]
        add_span_attributes(
            **{"beats.filtered": filtered_count, "beats.matched": len(beats)}
        )
        offset = (page - 1) * limit
        return beats[offset : offset + limit]

    async def find_by_producer(
        self, producer_id: str, page: int = 1, limit: int | None = None
    ) -> list[Record]:
        return await self.find_many(BeatFilters(producer_id=producer_id), page, limit)

    async def with_producers(self, beats: list[Record]) -> list[Record]:
        """Replace each producer ID with {id, username, profile_picture}.

        One concurrent lookup per distinct producer; unknown producers keep the bare ID.
        """
        producer_ids = list(
            dict.fromkeys(b["producer"] for b in beats if isinstance(b.get("producer"), str))
        )
        found = await asyncio.gather(*(self._users.find_by_id(pid) for pid in producer_ids))
        profiles = {
            pid: public_profile(user).to_dict()
            for pid, user in zip(producer_ids, found)
            if user is not None
        }
        return [
            {**b, "producer": profiles.get(b.get("producer"), b.get("producer"))}
            for b in beats
        ]

    async def update(self, beat_id: str, updates: dict[str, Any]) -> Record | None:
        """Patch a beat; refreshes updated_at. None if the beat does not exist."""
        _check_price(updates)
        data = dict(updates)
        if isinstance(data.get("producer"), str):
            data["producer"] = user_ref(data["producer"])
        return await self._patch(beat_id, data)

    async def delete(self, beat_id: str) -> Record | None:
        """Soft delete: mark is_deleted so listings skip the beat; the document stays."""
        return await self.update(beat_id, {"is_deleted": True})

    async def increment_play_count(self, beat_id: str) -> Record | None:
        """Atomically add one play; None if the beat does not exist."""
        return await self._patch(beat_id, {"play_count": Increment(1)}, touch=False)

    async def like(self, beat_id: str, user_id: str) -> LikeResult:
        """Toggle user_id in the beat's likes based on current membership.

        Membership is read before the write, so two concurrent toggles by the
        same user can both see the same state.

        Raises:
            ResourceNotFoundException: the beat does not exist.
        """
        beat = await self.find_by_id(beat_id)
        if beat is None:
            raise ResourceNotFoundException("beat", beat_id)
        ref = self._ref(beat_id)
        if user_id in (beat.get("likes") or []):
            await ref.update({"likes": ArrayRemove([user_id])})
            return LikeResult(liked=False)
        await ref.update({"likes": ArrayUnion([user_id])})
        return LikeResult(liked=True)
