"""Generic page of results."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Page:
    """A slice of a larger list plus the size of the whole list."""

    items: list[Any] = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def pages(self) -> int:
        """Number of pages of size limit needed for total items."""
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
