"""Firestore-backed notification repository."""

from __future__ import annotations

from beatcrest.infrastructure.firebase._rest_encoding import SERVER_TIMESTAMP
from beatcrest.infrastructure.firebase.collections import COLLECTION_NOTIFICATIONS
from beatcrest.infrastructure.firebase.records import Record
from beatcrest.infrastructure.firebase.repositories._base import (
    FirestoreRepository,
    user_ref,
)


class FirestoreNotificationRepository(FirestoreRepository):
    """Notification repository using Firestore.

    related_id is stored as given: it may name a beat, a purchase or a
    message depending on type, so it is never resolved here.
    """

    collection_name = COLLECTION_NOTIFICATIONS

    async def create(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        body: str,
        related_id: str | None = None,
    ) -> Record:
        return await self._insert({
            "user": user_ref(user_id),
            "type": notification_type,
            "title": title,
            "body": body,
            "related_id": related_id,
            "is_read": False,
            "created_at": SERVER_TIMESTAMP,
        })

    async def find_by_id(self, notification_id: str) -> Record | None:
        return await self._load(notification_id)

    async def find_by_user(
        self, user_id: str, unread_only: bool = False, limit: int | None = None
    ) -> list[Record]:
        """Notifications for user_id, newest first.

        Filtering on is_read and ordering on created_at needs a composite
        index; without it the user's notifications are filtered and sorted
        in memory.
        """
        ref = user_ref(user_id)

        def build():
            query = self._coll.where("user", "==", ref)
            if unread_only:
                query = query.where("is_read", "==", False)
            return query

        records = await self._ordered(
            build,
            "created_at",
            descending=True,
            fallback=lambda: self._coll.where("user", "==", ref),
            keep=lambda r: not unread_only or not r.get("is_read"),
        )
        return records[:limit] if limit else records

    async def mark_as_read(self, notification_id: str) -> Record | None:
        """Set is_read; None if the notification does not exist."""
        return await self._patch(notification_id, {"is_read": True}, touch=False)

    async def _unread(self, user_id: str):
        return await (
            self._coll.where("user", "==", user_ref(user_id))
            .where("is_read", "==", False)
            .get()
        )

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of user_id read; returns how many changed."""
        unread = await self._unread(user_id)
        return await self._commit_updates([s.id for s in unread], {"is_read": True})

    async def unread_count(self, user_id: str) -> int:
        return len(await self._unread(user_id))

    async def delete(self, notification_id: str) -> bool:
        """Remove the notification document. False if it did not exist."""
        if await self.find_by_id(notification_id) is None:
            return False
        await self._ref(notification_id).delete()
        return True
