"""FastAPI dependencies shared by v1 routes."""

from fastapi import HTTPException, Request

from beatcrest.infrastructure.firebase.repositories import Repositories

FIRESTORE_NOT_CONFIGURED = (
    "Firestore not configured (set FIREBASE_SERVICE_ACCOUNT_KEY or PATH)"
)


def get_repositories(request: Request) -> Repositories:
    """Repositories built at startup, or 503 when the document store is unavailable."""
    repositories = getattr(request.app.state, "repositories", None)
    if repositories is None:
        raise HTTPException(status_code=503, detail=FIRESTORE_NOT_CONFIGURED)
    return repositories
