"""DTOs for conversation aggregation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversationSummary:
    """One row per counterpart: latest message either way, and unread count for the viewer."""

    other_user_id: str
    last_message: str | None
    last_message_time: str | None
    unread_count: int
