"""Firestore-backed comment repository. Comments are immutable once written."""

from __future__ import annotations

import asyncio

from beatcrest.domain.exceptions import ValidationException
from beatcrest.infrastructure.firebase._rest_client import FirestoreRESTClient
from beatcrest.infrastructure.firebase._rest_encoding import SERVER_TIMESTAMP
from beatcrest.infrastructure.firebase.collections import COLLECTION_COMMENTS
from beatcrest.infrastructure.firebase.records import Record
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


class FirestoreCommentRepository(FirestoreRepository):
    """Comment repository using Firestore (create and list only)."""

    collection_name = COLLECTION_COMMENTS

    def __init__(
        self,
        client: FirestoreRESTClient,
        beats: FirestoreBeatRepository,
        users: FirestoreUserRepository,
    ) -> None:
        super().__init__(client)
        self._beats = beats
        self._users = users

    async def create(self, beat_id: str, user_id: str, content: str) -> Record:
        """Add a comment by user_id on beat_id."""
        if not content or not content.strip():
            raise ValidationException("content is required", field="content")
        return await self._insert({
            "beat": self._beats.reference(beat_id),
            "user": user_ref(user_id),
            "content": content,
            "created_at": SERVER_TIMESTAMP,
        })

    async def find_by_beat(self, beat_id: str) -> list[Record]:
        """Comments on beat_id, newest first."""
        ref = self._beats.reference(beat_id)
        return await self._ordered(
            lambda: self._coll.where("beat", "==", ref), "created_at", descending=True
        )

    async def with_authors(self, comments: list[Record]) -> list[Record]:
        """Replace each user ID with the author's public profile (concurrent lookups)."""
        author_ids = list(dict.fromkeys(c["user"] for c in comments if c.get("user")))
        found = await asyncio.gather(*(self._users.find_by_id(uid) for uid in author_ids))
        profiles = {u["id"]: public_profile(u).to_dict() for u in found if u is not None}
        return [{**c, "user": profiles.get(c.get("user"), c.get("user"))} for c in comments]
