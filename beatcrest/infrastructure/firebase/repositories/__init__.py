"""Firestore-backed repository implementations."""

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
from beatcrest.infrastructure.firebase.repositories.registry import (
    Repositories,
    build_repositories,
)
from beatcrest.infrastructure.firebase.repositories.tenant_repo_firestore import (
    FirestoreTenantRepository,
)
from beatcrest.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
)

__all__ = [
    "FirestoreBeatRepository",
    "FirestoreCommentRepository",
    "FirestoreMessageRepository",
    "FirestoreNotificationRepository",
    "FirestorePurchaseRepository",
    "FirestoreTenantRepository",
    "FirestoreUserRepository",
    "Repositories",
    "build_repositories",
]
