"""Firestore-backed tenant repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from beatcrest.domain.exceptions import (
    ResourceNotFoundException,
    TenantAlreadyExistsException,
    ValidationException,
)
from beatcrest.infrastructure.firebase._rest_client import (
    DocumentMissingError,
    FirestoreRESTClient,
)
from beatcrest.infrastructure.firebase._rest_encoding import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
)
from beatcrest.infrastructure.firebase.collections import COLLECTION_TENANTS
from beatcrest.infrastructure.firebase.records import Record
from beatcrest.infrastructure.firebase.repositories._base import FirestoreRepository

if TYPE_CHECKING:
    from beatcrest.infrastructure.firebase.repositories.user_repo_firestore import (
        FirestoreUserRepository,
    )

_MANAGED_FIELDS = frozenset({"id", "admin_ids", "created_at", "updated_at"})


class FirestoreTenantRepository(FirestoreRepository):
    """Tenant repository using Firestore.

    Names are checked for uniqueness before create, but two concurrent
    creates with the same name can both pass the check.
    """

    collection_name = COLLECTION_TENANTS

    def __init__(
        self,
        client: FirestoreRESTClient,
        users: FirestoreUserRepository | None = None,
    ) -> None:
        super().__init__(client)
        self._users = users

    async def create(
        self,
        name: str,
        domain: str | None = None,
        description: str | None = None,
        admin_ids: list[str] | None = None,
        is_active: bool = True,
        **extra: Any,
    ) -> Record:
        """Create a tenant; raise TenantAlreadyExistsException if the name is taken."""
        if not name or not name.strip():
            raise ValidationException("name is required", field="name")
        reserved = _MANAGED_FIELDS.intersection(extra)
        if reserved:
            field = sorted(reserved)[0]
            raise ValidationException(f"Field is managed by the repository: {field}", field=field)
        if await self.find_by_name(name) is not None:
            raise TenantAlreadyExistsException(name)
        return await self._insert({
            **extra,
            "name": name,
            "domain": domain,
            "description": description,
            "admin_ids": list(dict.fromkeys(admin_ids or [])),
            "is_active": is_active,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })

    async def find_by_id(self, tenant_id: str) -> Record | None:
        return await self._load(tenant_id)

    async def find_by_name(self, name: str) -> Record | None:
        """Return tenant by name (server-side where query, at most one doc)."""
        return await self._first("name", name)

    async def find_all(self, is_active: bool | None = None) -> list[Record]:
        """All tenants, newest first, optionally only active or inactive ones."""
        if is_active is None:
            return await self._ordered(lambda: self._coll.limit(None), "created_at")
        return await self._ordered(
            lambda: self._coll.where("is_active", "==", is_active), "created_at"
        )

    async def update(self, tenant_id: str, updates: dict[str, Any]) -> Record | None:
        """Patch tenant fields; None if the tenant does not exist.

        admin_ids is changed only through add_admin/remove_admin.
        """
        if "admin_ids" in updates:
            raise ValidationException(
                "admin_ids is changed with add_admin/remove_admin", field="admin_ids"
            )
        return await self._patch(tenant_id, updates)

    async def delete(self, tenant_id: str) -> Record | None:
        """Soft delete: mark the tenant inactive."""
        return await self.update(tenant_id, {"is_active": False})

    async def _change_admins(self, tenant_id: str, change: Any) -> Record:
        try:
            await self._ref(tenant_id).update(
                {"admin_ids": change, "updated_at": SERVER_TIMESTAMP}
            )
        except DocumentMissingError:
            raise ResourceNotFoundException("tenant", tenant_id) from None
        return await self._reload(self._ref(tenant_id))

    async def add_admin(self, tenant_id: str, user_id: str) -> Record:
        """Add user_id to admin_ids (no duplicate if already present).

        Raises:
            ResourceNotFoundException: tenant missing, or the user is unknown
                when a user repository is attached.
        """
        if self._users is not None and await self._users.find_by_id(user_id) is None:
            raise ResourceNotFoundException("user", user_id)
        return await self._change_admins(tenant_id, ArrayUnion([user_id]))

    async def remove_admin(self, tenant_id: str, user_id: str) -> Record:
        """Remove user_id from admin_ids; not an admin is a no-op."""
        return await self._change_admins(tenant_id, ArrayRemove([user_id]))
