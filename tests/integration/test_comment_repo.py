"""Comment repository tests."""

import pytest

from beatcrest.domain.exceptions import ValidationException


async def test_comments_newest_first_with_authors(repos) -> None:
    alice = await repos.users.create("alice", "alice@example.com", "producer")
    bob = await repos.users.create("bob", "bob@example.com")
    beat = await repos.beats.create({"producer": alice["id"], "title": "Midnight"})
    other = await repos.beats.create({"producer": alice["id"], "title": "Other"})

    first = await repos.comments.create(beat["id"], bob["id"], "fire")
    second = await repos.comments.create(beat["id"], alice["id"], "thanks!")
    await repos.comments.create(other["id"], bob["id"], "elsewhere")

    comments = await repos.comments.find_by_beat(beat["id"])
    assert [c["id"] for c in comments] == [second["id"], first["id"]]
    assert first["beat"] == beat["id"] and first["user"] == bob["id"]

    enriched = await repos.comments.with_authors(comments)
    assert [c["user"]["username"] for c in enriched] == ["alice", "bob"]


async def test_index_fallback(indexless_repos) -> None:
    r = indexless_repos
    bob = await r.users.create("bob", "bob@example.com")
    beat = await r.beats.create({"producer": bob["id"], "title": "Midnight"})
    ids = [(await r.comments.create(beat["id"], bob["id"], f"c{i}"))["id"] for i in range(3)]
    assert [c["id"] for c in await r.comments.find_by_beat(beat["id"])] == ids[::-1]


async def test_empty_content_rejected(repos) -> None:
    with pytest.raises(ValidationException):
        await repos.comments.create("b1", "u1", "   ")
