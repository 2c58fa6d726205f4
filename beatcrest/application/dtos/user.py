"""DTOs for user relationship operations (no dependency on the store)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FollowResult:
    """Outcome of follow/unfollow.

    following is the relationship state after the call; changed is False
    when the call was a no-op (already following / not following).
    """

    following: bool
    changed: bool


@dataclass(frozen=True)
class PublicProfile:
    """Display subset of a user attached to other records (producer, author, follower)."""

    id: str
    username: str
    profile_picture: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "username": self.username,
            "profile_picture": self.profile_picture,
        }
