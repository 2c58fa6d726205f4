"""Composition root for the Firestore repositories.

Repositories that resolve references into other collections receive the
repository owning that collection; nothing else is shared between them.
"""

from __future__ import annotations

from dataclasses import dataclass

from beatcrest.core.config import get_settings
from beatcrest.infrastructure.firebase._rest_client import FirestoreRESTClient
from beatcrest.infrastructure.firebase.repositories.beat_repo_firestore import (
    FirestoreBeatRepository,
)
from beatcrest.infrastructure.firebase.repositories.comment_repo_firestore import (
    FirestoreCommentRepository,
)
from beatcrest.infrastructure.firebase.repositories.message_repo_firestore import (
    FirestoreMessageRepository,
)
from beatcrest.infrastructure.firebase.repositories.notification_repo_firestore import (
    FirestoreNotificationRepository,
)
from beatcrest.infrastructure.firebase.repositories.purchase_repo_firestore import (
    FirestorePurchaseRepository,
)
from beatcrest.infrastructure.firebase.repositories.tenant_repo_firestore import (
    FirestoreTenantRepository,
)
from beatcrest.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
)


@dataclass(frozen=True)
class Repositories:
    users: FirestoreUserRepository
    beats: FirestoreBeatRepository
    purchases: FirestorePurchaseRepository
    comments: FirestoreCommentRepository
    messages: FirestoreMessageRepository
    notifications: FirestoreNotificationRepository
    tenants: FirestoreTenantRepository


def build_repositories(
    client: FirestoreRESTClient, *, license_prefix: str | None = None
) -> Repositories:
    """Wire every repository against one client."""
    users = FirestoreUserRepository(client)
    beats = FirestoreBeatRepository(client, users)
    return Repositories(
        users=users,
        beats=beats,
        purchases=FirestorePurchaseRepository(
            client, beats, users, license_prefix or get_settings().license_prefix
        ),
        comments=FirestoreCommentRepository(client, beats, users),
        messages=FirestoreMessageRepository(client),
        notifications=FirestoreNotificationRepository(client),
        tenants=FirestoreTenantRepository(client, users),
    )
