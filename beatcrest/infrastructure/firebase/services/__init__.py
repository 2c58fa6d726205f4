"""Firestore-backed maintenance services."""

from beatcrest.infrastructure.firebase.services.relationship_reconciliation import (
    RelationshipReconciliationService,
)

__all__ = ["RelationshipReconciliationService"]
