"""Application DTOs (no dependency on the document store)."""

from beatcrest.application.dtos.beat import BeatFilters, LikeResult
from beatcrest.application.dtos.message import ConversationSummary
from beatcrest.application.dtos.pagination import Page
from beatcrest.application.dtos.reconciliation import ReconciliationReport
from beatcrest.application.dtos.user import FollowResult, PublicProfile

__all__ = [
    "BeatFilters",
    "ConversationSummary",
    "FollowResult",
    "LikeResult",
    "Page",
    "PublicProfile",
    "ReconciliationReport",
]
