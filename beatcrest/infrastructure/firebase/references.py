"""Typed document references.

A DocumentPath is a pointer to another document (collection + ID). It is
stored as a Firestore referenceValue and read back as a DocumentPath, so a
reference is never resolved implicitly: turning one into a record is always
an explicit repository call.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentPath:
    """Pointer to a document in a top-level collection."""

    collection: str
    id: str

    @property
    def path(self) -> str:
        """Relative document path, e.g. 'users/abc123'."""
        return f"{self.collection}/{self.id}"

    @classmethod
    def parse(cls, name: str) -> DocumentPath:
        """Build from a relative path or a full resource name.

        Accepts 'users/abc' as well as
        'projects/p/databases/(default)/documents/users/abc'.
        """
        segments = [s for s in name.split("/") if s]
        if len(segments) < 2:
            raise ValueError(f"Not a document path: {name!r}")
        return cls(collection=segments[-2], id=segments[-1])

    def __str__(self) -> str:
        return self.path
