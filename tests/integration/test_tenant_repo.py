"""Tenant repository tests."""

import pytest

from beatcrest.domain.exceptions import (
    ResourceNotFoundException,
    TenantAlreadyExistsException,
    ValidationException,
)


async def test_create_and_lookup(repos) -> None:
    tenant = await repos.tenants.create("Acme Records", domain="acme.fm", description="Label")
    assert tenant["is_active"] is True
    assert tenant["admin_ids"] == []
    assert (await repos.tenants.find_by_id(tenant["id"]))["domain"] == "acme.fm"
    assert (await repos.tenants.find_by_name("Acme Records"))["id"] == tenant["id"]
    assert await repos.tenants.find_by_name("Nope") is None
    assert await repos.tenants.find_by_id("missing") is None


async def test_duplicate_name_rejected(repos) -> None:
    await repos.tenants.create("Acme")
    with pytest.raises(TenantAlreadyExistsException):
        await repos.tenants.create("Acme")
    with pytest.raises(ValidationException):
        await repos.tenants.create("  ")


@pytest.mark.parametrize("use_indexes", [True, False])
async def test_find_all_and_soft_delete(repos, indexless_repos, use_indexes) -> None:
    r = repos if use_indexes else indexless_repos
    first = await r.tenants.create("One")
    second = await r.tenants.create("Two")
    deleted = await r.tenants.delete(first["id"])
    assert deleted["is_active"] is False

    assert [t["id"] for t in await r.tenants.find_all()] == [second["id"], first["id"]]
    assert [t["id"] for t in await r.tenants.find_all(is_active=True)] == [second["id"]]
    assert [t["id"] for t in await r.tenants.find_all(is_active=False)] == [first["id"]]
    assert (await r.tenants.find_by_id(first["id"]))["name"] == "One"


async def test_update(repos) -> None:
    tenant = await repos.tenants.create("Acme")
    updated = await repos.tenants.update(tenant["id"], {"description": "Indie label"})
    assert updated["description"] == "Indie label"
    assert updated["updated_at"] > tenant["updated_at"]
    assert await repos.tenants.update("missing", {"description": "x"}) is None
    with pytest.raises(ValidationException):
        await repos.tenants.update(tenant["id"], {"admin_ids": []})


async def test_admin_membership(repos) -> None:
    alice = await repos.users.create("alice", "alice@example.com", "admin")
    tenant = await repos.tenants.create("Acme")

    added = await repos.tenants.add_admin(tenant["id"], alice["id"])
    assert added["admin_ids"] == [alice["id"]]
    again = await repos.tenants.add_admin(tenant["id"], alice["id"])
    assert again["admin_ids"] == [alice["id"]]

    removed = await repos.tenants.remove_admin(tenant["id"], alice["id"])
    assert removed["admin_ids"] == []
    assert (await repos.tenants.remove_admin(tenant["id"], alice["id"]))["admin_ids"] == []


async def test_admin_preconditions(repos) -> None:
    alice = await repos.users.create("alice", "alice@example.com")
    tenant = await repos.tenants.create("Acme")
    with pytest.raises(ResourceNotFoundException):
        await repos.tenants.remove_admin("missing", alice["id"])
    with pytest.raises(ResourceNotFoundException):
        await repos.tenants.add_admin("missing", alice["id"])
    with pytest.raises(ResourceNotFoundException):
        await repos.tenants.add_admin(tenant["id"], "ghost")
