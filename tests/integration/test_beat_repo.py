"""Beat repository tests: listing pipeline, index fallback, likes."""

import pytest

from beatcrest.application.dtos.beat import BeatFilters
from beatcrest.domain.exceptions import ResourceNotFoundException, ValidationException


@pytest.fixture
async def producer(repos):
    return await repos.users.create(
        "alice", "alice@example.com", "producer", profile_picture="https://img/alice.png"
    )


async def _seed(repos, producer_id: str) -> list[dict]:
    rows = [
        {"title": "Afro Sunrise", "genre": "afrobeat", "price": 30.0, "bpm": 100},
        {"title": "Trap House", "genre": "trap", "price": 50.0, "bpm": 140},
        {"title": "Lagos Nights", "genre": "afrobeat", "price": 80.0, "bpm": 100,
         "description": "afro fusion"},
        {"title": "Chill Loop", "genre": "lofi", "price": 10.0, "bpm": 80},
        {"title": "Afro Drill", "genre": "drill", "price": 40.0, "bpm": 140},
    ]
    return [await repos.beats.create({**row, "producer": producer_id}) for row in rows]


async def test_create_sets_defaults(repos, producer) -> None:
    beat = await repos.beats.create(
        {"producer": producer["id"], "title": "Midnight", "price": 1000, "tags": ["dark"]}
    )
    assert beat["producer"] == producer["id"]
    assert beat["play_count"] == 0
    assert beat["likes"] == []
    assert beat["is_deleted"] is False
    assert beat["tags"] == ["dark"]
    assert beat["created_at"]


async def test_create_validation(repos, producer) -> None:
    with pytest.raises(ValidationException):
        await repos.beats.create({"producer": producer["id"], "title": "x", "price": -1})
    with pytest.raises(ValidationException):
        await repos.beats.create({"producer": producer["id"]})
    with pytest.raises(ValidationException):
        await repos.beats.create({"title": "no producer"})


async def test_find_many_newest_first_with_producer_profiles(repos, producer) -> None:
    created = await _seed(repos, producer["id"])
    beats = await repos.beats.find_many()
    assert [b["id"] for b in beats] == [b["id"] for b in reversed(created)]
    assert beats[0]["producer"] == {
        "id": producer["id"],
        "username": "alice",
        "profile_picture": "https://img/alice.png",
    }


async def test_search_with_genre_and_limit(repos, producer) -> None:
    await _seed(repos, producer["id"])
    beats = await repos.beats.find_many(BeatFilters(genre="afrobeat", search="AFRO"), limit=1)
    assert len(beats) == 1
    assert beats[0]["title"] == "Lagos Nights"
    both = await repos.beats.find_many(BeatFilters(genre="afrobeat", search="afro"))
    assert {b["title"] for b in both} == {"Lagos Nights", "Afro Sunrise"}
    assert all(b["genre"] == "afrobeat" for b in both)


async def test_pagination_slices_after_search(repos, producer) -> None:
    await _seed(repos, producer["id"])
    page1 = await repos.beats.find_many(BeatFilters(search="afro"), page=1, limit=2)
    page2 = await repos.beats.find_many(BeatFilters(search="afro"), page=2, limit=2)
    assert len(page1) == 2 and len(page2) == 1
    assert not {b["id"] for b in page1} & {b["id"] for b in page2}
    with pytest.raises(ValidationException):
        await repos.beats.find_many(page=0)


async def test_price_and_bpm_filters(repos, producer) -> None:
    await _seed(repos, producer["id"])
    beats = await repos.beats.find_many(BeatFilters(min_price=30, max_price=50))
    assert {b["title"] for b in beats} == {"Afro Sunrise", "Trap House", "Afro Drill"}
    beats = await repos.beats.find_many(BeatFilters(bpm=140))
    assert {b["title"] for b in beats} == {"Trap House", "Afro Drill"}


async def test_index_fallback_gives_same_answer(repos, indexless_repos, indexless_client) -> None:
    filters = BeatFilters(genre="afrobeat", min_price=20, search="afro")
    results = []
    for r in (repos, indexless_repos):
        producer = await r.users.create("alice", "alice@example.com", "producer")
        await _seed(r, producer["id"])
        results.append([b["title"] for b in await r.beats.find_many(filters)])
    assert results[0] == results[1] == ["Lagos Nights", "Afro Sunrise"]
    assert not any(q._orders for q in indexless_client.queries if q._collection == "beats")


async def test_soft_delete_hides_from_listing_only(repos, producer) -> None:
    beat = await repos.beats.create({"producer": producer["id"], "title": "Gone"})
    deleted = await repos.beats.delete(beat["id"])
    assert deleted["is_deleted"] is True
    assert await repos.beats.find_many() == []
    assert (await repos.beats.find_by_id(beat["id"]))["title"] == "Gone"
    assert await repos.beats.delete("missing") is None


async def test_find_by_producer(repos, producer) -> None:
    other = await repos.users.create("zed", "zed@example.com", "producer")
    await repos.beats.create({"producer": producer["id"], "title": "Mine"})
    await repos.beats.create({"producer": other["id"], "title": "Theirs"})
    beats = await repos.beats.find_by_producer(producer["id"])
    assert [b["title"] for b in beats] == ["Mine"]


async def test_unknown_producer_keeps_bare_id(repos) -> None:
    await repos.beats.create({"producer": "ghost", "title": "Orphan"})
    beats = await repos.beats.find_many()
    assert beats[0]["producer"] == "ghost"


async def test_update_validates_price(repos, producer) -> None:
    beat = await repos.beats.create({"producer": producer["id"], "title": "Midnight"})
    updated = await repos.beats.update(beat["id"], {"price": 25})
    assert updated["price"] == 25
    with pytest.raises(ValidationException):
        await repos.beats.update(beat["id"], {"price": -5})
    assert await repos.beats.update("missing", {"price": 1}) is None


async def test_like_toggles(repos, producer) -> None:
    fan = await repos.users.create("bob", "bob@example.com")
    beat = await repos.beats.create({"producer": producer["id"], "title": "Midnight"})
    assert (await repos.beats.like(beat["id"], fan["id"])).liked is True
    assert (await repos.beats.find_by_id(beat["id"]))["likes"] == [fan["id"]]
    assert (await repos.beats.like(beat["id"], fan["id"])).liked is False
    assert (await repos.beats.find_by_id(beat["id"]))["likes"] == []
    with pytest.raises(ResourceNotFoundException):
        await repos.beats.like("missing", fan["id"])


async def test_increment_play_count(repos, producer) -> None:
    beat = await repos.beats.create({"producer": producer["id"], "title": "Midnight"})
    await repos.beats.increment_play_count(beat["id"])
    played = await repos.beats.increment_play_count(beat["id"])
    assert played["play_count"] == 2
    assert played["updated_at"] == beat["updated_at"]
    assert await repos.beats.increment_play_count("missing") is None


async def test_with_producers_looks_up_each_producer_once(repos, producer, monkeypatch) -> None:
    beats = await _seed(repos, producer["id"])
    calls: list[str] = []
    find_by_id = repos.users.find_by_id

    async def counting(user_id: str):
        calls.append(user_id)
        return await find_by_id(user_id)

    monkeypatch.setattr(repos.users, "find_by_id", counting)
    enriched = await repos.beats.with_producers(beats + [{**beats[0], "producer": "gone"}])
    assert sorted(calls) == sorted([producer["id"], "gone"])
    assert all(b["producer"]["username"] == "alice" for b in enriched[:-1])
    assert enriched[-1]["producer"] == "gone"
