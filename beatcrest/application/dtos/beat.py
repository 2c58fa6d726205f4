"""DTOs for beat listing and engagement."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BeatFilters:
    """Listing filters for find_many. None means "no constraint".

    genre, bpm and producer_id are equality filters and min_price/max_price
    a range, all applied by the store; search is a case-insensitive
    substring match over title, description and genre applied in memory.
    """

    genre: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    bpm: int | None = None
    producer_id: str | None = None
    search: str | None = None


@dataclass(frozen=True)
class LikeResult:
    """Outcome of a like toggle: liked is the membership after the call."""

    liked: bool
