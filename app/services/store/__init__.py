"""
Store layer - persistence and gamification collaborators.

USE_MOCK_DB selects the in-memory backend; otherwise Firestore.
"""

from typing import Optional

from app.core.settings import settings
from app.services.store.base import (
    FIRST_REPORTER,
    AchievementService,
    IssueStore,
    PointsLedger,
)

_issue_store: Optional[IssueStore] = None
_points_ledger: Optional[PointsLedger] = None
_achievement_service: Optional[AchievementService] = None


def get_issue_store() -> IssueStore:
    global _issue_store
    if _issue_store is None:
        if settings.USE_MOCK_DB:
            from app.services.store.memory_store import InMemoryIssueStore
            _issue_store = InMemoryIssueStore()
        else:
            from app.services.store.firestore_store import FirestoreIssueStore
            _issue_store = FirestoreIssueStore()
    return _issue_store


def get_points_ledger() -> PointsLedger:
    global _points_ledger
    if _points_ledger is None:
        if settings.USE_MOCK_DB:
            from app.services.store.memory_store import InMemoryPointsLedger
            _points_ledger = InMemoryPointsLedger()
        else:
            from app.services.store.firestore_store import FirestorePointsLedger
            _points_ledger = FirestorePointsLedger()
    return _points_ledger


def get_achievement_service() -> AchievementService:
    global _achievement_service
    if _achievement_service is None:
        if settings.USE_MOCK_DB:
            from app.services.store.memory_store import InMemoryAchievementService
            _achievement_service = InMemoryAchievementService()
        else:
            from app.services.store.firestore_store import FirestoreAchievementService
            _achievement_service = FirestoreAchievementService()
    return _achievement_service


__all__ = [
    "FIRST_REPORTER",
    "AchievementService",
    "IssueStore",
    "PointsLedger",
    "get_achievement_service",
    "get_issue_store",
    "get_points_ledger",
]
