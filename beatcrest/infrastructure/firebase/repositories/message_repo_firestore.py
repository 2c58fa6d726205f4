"""Firestore-backed direct messages and per-counterpart conversation summaries.

Each message is stored once, sender -> receiver. Firestore queries are
conjunctions of equality filters, so "between A and B" takes two queries
(A->B and B->A) merged in memory, and the conversation list is rebuilt from
every message the user sent or received on each call. There is no
materialized conversation index.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

from beatcrest.application.dtos.message import ConversationSummary
from beatcrest.domain.exceptions import ValidationException
from beatcrest.infrastructure.firebase._rest_encoding import SERVER_TIMESTAMP
from beatcrest.infrastructure.firebase.collections import COLLECTION_MESSAGES
from beatcrest.infrastructure.firebase.records import (
    Record,
    sort_by_timestamp,
    to_records,
)
from beatcrest.infrastructure.firebase.repositories._base import (
    FirestoreRepository,
    user_ref,
)
from beatcrest.shared.telemetry.tracing import add_span_attributes, traced
from beatcrest.shared.utils.datetime import parse_timestamp

_EPOCH = datetime.min.replace(tzinfo=UTC)


@dataclass
class _Thread:
    last_message: str | None = None
    last_message_time: str | None = None
    last_at: datetime | None = None
    unread_count: int = 0

    def offer(self, message: Record) -> None:
        """Keep message as the latest if it is newer than the current one."""
        at = parse_timestamp(message.get("created_at"))
        newer = self.last_message_time is None or (
            at is not None and (self.last_at is None or at > self.last_at)
        )
        if newer:
            self.last_message = message.get("content")
            self.last_message_time = message.get("created_at")
            self.last_at = at


class FirestoreMessageRepository(FirestoreRepository):
    """Message repository using Firestore."""

    collection_name = COLLECTION_MESSAGES

    async def create(self, sender_id: str, receiver_id: str, content: str) -> Record:
        """Store an unread message from sender_id to receiver_id."""
        if not content or not content.strip():
            raise ValidationException("content is required", field="content")
        return await self._insert({
            "sender": user_ref(sender_id),
            "receiver": user_ref(receiver_id),
            "content": content,
            "is_read": False,
            "created_at": SERVER_TIMESTAMP,
        })

    async def _between(self, sender_id: str, receiver_id: str) -> list[Record]:
        sender, receiver = user_ref(sender_id), user_ref(receiver_id)
        return await self._ordered(
            lambda: self._coll.where("sender", "==", sender).where("receiver", "==", receiver),
            "created_at",
            descending=False,
        )

    async def get_conversation(self, user_id: str, other_user_id: str) -> list[Record]:
        """All messages between the two users, oldest first."""
        sent, received = await asyncio.gather(
            self._between(user_id, other_user_id),
            self._between(other_user_id, user_id),
        )
        return sort_by_timestamp(sent + received, "created_at")

    @traced("messages.get_conversations")
    async def get_conversations(self, user_id: str) -> list[ConversationSummary]:
        """One summary per counterpart, most recent conversation first.

        last_message is the newest message in either direction (by
        timestamp); unread_count counts unread messages the user received.
        """
        me = user_ref(user_id)
        sent, received = await asyncio.gather(
            self._coll.where("sender", "==", me).get(),
            self._coll.where("receiver", "==", me).get(),
        )
        threads: dict[str, _Thread] = {}
        for message in to_records(sent):
            other = message.get("receiver")
            if other:
                threads.setdefault(other, _Thread()).offer(message)
        for message in to_records(received):
            other = message.get("sender")
            if not other:
                continue
            thread = threads.setdefault(other, _Thread())
            thread.offer(message)
            if not message.get("is_read"):
                thread.unread_count += 1
        add_span_attributes(
            **{"messages.scanned": len(sent) + len(received), "messages.threads": len(threads)}
        )
        summaries = [
            ConversationSummary(
                other_user_id=other,
                last_message=t.last_message,
                last_message_time=t.last_message_time,
                unread_count=t.unread_count,
            )
            for other, t in threads.items()
        ]
        latest = {other: t.last_at or _EPOCH for other, t in threads.items()}
        return sorted(summaries, key=lambda s: latest[s.other_user_id], reverse=True)

    @traced("messages.mark_as_read")
    async def mark_as_read(self, user_id: str, other_user_id: str) -> int:
        """Flip every unread other_user_id -> user_id message to read in one batch.

        Returns:
            Number of messages updated (0 when nothing was unread; no commit then).
        """
        unread = await (
            self._coll.where("sender", "==", user_ref(other_user_id))
            .where("receiver", "==", user_ref(user_id))
            .where("is_read", "==", False)
            .get()
        )
        return await self._commit_updates([s.id for s in unread], {"is_read": True})
