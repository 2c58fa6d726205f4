"""Firestore-backed user repository: accounts, lookups, and the follow graph.

followers/following live on the two user documents involved and are kept
as mirror images by follow()/unfollow(). The two writes are separate
requests (no cross-document transaction): the follower's own `following`
is written first and is the authoritative side; the relationship
reconciliation pass repairs `followers` from it.
"""

from __future__ import annotations

import asyncio
from typing import Any

from beatcrest.application.dtos.pagination import Page
from beatcrest.application.dtos.user import FollowResult, PublicProfile
from beatcrest.core.config import get_settings
from beatcrest.domain.enums import AccountType
from beatcrest.domain.exceptions import (
    ResourceNotFoundException,
    UserAlreadyExistsException,
    ValidationException,
)
from beatcrest.infrastructure.firebase._rest_encoding import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
)
from beatcrest.infrastructure.firebase.collections import COLLECTION_USERS
from beatcrest.infrastructure.firebase.records import Record, to_record, to_records
from beatcrest.infrastructure.firebase.repositories._base import FirestoreRepository
from beatcrest.infrastructure.security.password import (
    get_password_hash,
    verify_password,
)

# Highest BMP private-use code point: username <= query + this == "starts with query".
PREFIX_SEARCH_SENTINEL = "\uf8ff"

_MANAGED_FIELDS = frozenset(
    {"id", "followers", "following", "password_hash", "created_at", "updated_at"}
)

_dummy_hash_cache: str | None = None


async def _get_dummy_hash() -> str:
    """Return a valid bcrypt hash for dummy comparison (timing-attack mitigation)."""
    global _dummy_hash_cache
    if _dummy_hash_cache is None:
        _dummy_hash_cache = await asyncio.to_thread(
            get_password_hash, "not-a-real-password"
        )
    return _dummy_hash_cache


def _without_secret(record: Record | None) -> Record | None:
    if record is not None:
        record.pop("password_hash", None)
    return record


def public_profile(record: Record) -> PublicProfile:
    """Display subset of a user record."""
    return PublicProfile(
        id=record["id"],
        username=record.get("username", ""),
        profile_picture=record.get("profile_picture"),
    )


class FirestoreUserRepository(FirestoreRepository):
    """User repository using Firestore. Records never carry password_hash."""

    collection_name = COLLECTION_USERS

    async def create(
        self,
        username: str,
        email: str,
        account_type: AccountType | str = AccountType.FAN,
        password: str | None = None,
        **profile: Any,
    ) -> Record:
        """Create a user after checking username and email are free.

        Raises:
            UserAlreadyExistsException: username or email already registered.
            ValidationException: unknown account type or a managed field in profile.
        """
        reserved = _MANAGED_FIELDS.intersection(profile)
        if reserved:
            raise ValidationException(
                f"Field is managed by the repository: {sorted(reserved)[0]}",
                field=sorted(reserved)[0],
            )
        try:
            kind = AccountType(account_type)
        except ValueError:
            raise ValidationException(
                f"account_type must be one of {AccountType.values()}",
                field="account_type",
            ) from None

        by_username, by_email = await asyncio.gather(
            self.find_by_username(username), self.find_by_email(email)
        )
        if by_username is not None:
            raise UserAlreadyExistsException("username", username)
        if by_email is not None:
            raise UserAlreadyExistsException("email", email)

        data: dict[str, Any] = {
            **profile,
            "username": username,
            "email": email,
            "account_type": kind.value,
            "followers": [],
            "following": [],
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        }
        if password:
            data["password_hash"] = await asyncio.to_thread(get_password_hash, password)
        return _without_secret(await self._insert(data))

    async def find_by_id(self, user_id: str) -> Record | None:
        return _without_secret(await self._load(user_id))

    async def find_by_email(self, email: str) -> Record | None:
        return _without_secret(await self._first("email", email))

    async def find_by_username(self, username: str) -> Record | None:
        return _without_secret(await self._first("username", username))

    async def find_many_by_ids(self, user_ids: list[str]) -> list[Record]:
        """Fetch users concurrently; missing IDs are dropped, order is kept."""
        records = await asyncio.gather(*(self.find_by_id(uid) for uid in user_ids))
        return [r for r in records if r is not None]

    async def find_all(self) -> list[Record]:
        """Every user (unbounded scan; used by the reconciliation pass)."""
        return [
            r
            async for s in self._coll.stream()
            if (r := _without_secret(to_record(s))) is not None
        ]

    async def update(self, user_id: str, updates: dict[str, Any]) -> Record | None:
        """Patch arbitrary profile fields; refreshes updated_at. None if the user does not exist."""
        if "account_type" in updates:
            try:
                updates = {**updates, "account_type": AccountType(updates["account_type"]).value}
            except ValueError:
                raise ValidationException(
                    f"account_type must be one of {AccountType.values()}",
                    field="account_type",
                ) from None
        return _without_secret(await self._patch(user_id, updates))

    async def search(self, query: str, limit: int | None = None) -> list[Record]:
        """Users whose username starts with query (case-sensitive range scan).

        limit defaults to settings.user_search_limit.
        """
        q = (
            self._coll.where("username", ">=", query)
            .where("username", "<=", query + PREFIX_SEARCH_SENTINEL)
            .limit(get_settings().user_search_limit if limit is None else limit)
        )
        return [_without_secret(r) for r in to_records(await q.get())]

    async def set_password(self, user_id: str, password: str) -> bool:
        """Store a new password hash; False if the user does not exist."""
        hashed = await asyncio.to_thread(get_password_hash, password)
        return await self._patch(user_id, {"password_hash": hashed}) is not None

    async def authenticate(self, email: str, password: str) -> Record | None:
        """Return the user when password matches; None otherwise.

        An account without a stored hash takes the first password it is
        logged in with. Unknown emails still pay for one bcrypt check.
        """
        raw = await self._first("email", email)
        if raw is None:
            await asyncio.to_thread(verify_password, password, await _get_dummy_hash())
            return None
        stored_hash = raw.get("password_hash")
        if not stored_hash:
            await self.set_password(raw["id"], password)
            return await self.find_by_id(raw["id"])
        if not await asyncio.to_thread(verify_password, password, stored_hash):
            return None
        return _without_secret(raw)

    async def _load_pair(self, follower_id: str, followee_id: str) -> tuple[Record, Record]:
        if follower_id == followee_id:
            raise ValidationException("Users cannot follow themselves", field="followee_id")
        follower, followee = await asyncio.gather(
            self.find_by_id(follower_id), self.find_by_id(followee_id)
        )
        if follower is None:
            raise ResourceNotFoundException("user", follower_id)
        if followee is None:
            raise ResourceNotFoundException("user", followee_id)
        return follower, followee

    async def follow(self, follower_id: str, followee_id: str) -> FollowResult:
        """Add followee to follower.following and follower to followee.followers.

        Already following is a no-op (changed=False), not an error.

        Raises:
            ResourceNotFoundException: either user does not exist.
        """
        follower, _ = await self._load_pair(follower_id, followee_id)
        if followee_id in (follower.get("following") or []):
            return FollowResult(following=True, changed=False)
        await self._ref(follower_id).update({"following": ArrayUnion([followee_id])})
        await self._ref(followee_id).update({"followers": ArrayUnion([follower_id])})
        return FollowResult(following=True, changed=True)

    async def unfollow(self, follower_id: str, followee_id: str) -> FollowResult:
        """Remove the relationship from both documents; not following is a no-op."""
        follower, _ = await self._load_pair(follower_id, followee_id)
        if followee_id not in (follower.get("following") or []):
            return FollowResult(following=False, changed=False)
        await self._ref(follower_id).update({"following": ArrayRemove([followee_id])})
        await self._ref(followee_id).update({"followers": ArrayRemove([follower_id])})
        return FollowResult(following=False, changed=True)

    async def _relation_page(
        self, user_id: str, field: str, page: int, limit: int
    ) -> Page:
        if page < 1 or limit < 1:
            raise ValidationException("page and limit must be >= 1", field="page")
        user = await self.find_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("user", user_id)
        ids = user.get(field) or []
        offset = (page - 1) * limit
        members = await self.find_many_by_ids(ids[offset : offset + limit])
        return Page(
            items=[public_profile(m).to_dict() for m in members],
            page=page,
            limit=limit,
            total=len(ids),
        )

    async def list_followers(self, user_id: str, page: int = 1, limit: int = 20) -> Page:
        """Public profiles of the user's followers, paginated over the stored ID list."""
        return await self._relation_page(user_id, "followers", page, limit)

    async def list_following(self, user_id: str, page: int = 1, limit: int = 20) -> Page:
        """Public profiles of the users this user follows."""
        return await self._relation_page(user_id, "following", page, limit)
