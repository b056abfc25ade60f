"""
In-memory collaborators for mock mode (USE_MOCK_DB=true) and tests.

A single lock per object makes read-modify-write sequences atomic, which
is what the Firestore backend gets from server-side increments.
"""

import logging
import threading
import uuid
from collections import defaultdict
from typing import Dict, List, Optional

from app.core.errors import NotFoundError
from app.models.issue import IssueRecord, PendingSubmission, utcnow
from app.services.store.base import (
    ACHIEVEMENT_DEFINITIONS,
    AchievementService,
    IssueStore,
    PointsLedger,
    submission_key,
)
from app.utils.geo import bounding_box

logger = logging.getLogger(__name__)


class InMemoryIssueStore(IssueStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._issues: Dict[str, IssueRecord] = {}
        self._by_submission_key: Dict[str, str] = {}
        self.validations: List[Dict] = []

    def add(self, record: IssueRecord) -> IssueRecord:
        """Insert an already-built record (seeding and tests)."""
        with self._lock:
            self._issues[record.id] = record
            if record.submission_id:
                self._by_submission_key[submission_key(record.reporter_id, record.submission_id)] = record.id
        return record

    def all_issues(self) -> List[IssueRecord]:
        with self._lock:
            return list(self._issues.values())

    def create_issue(
        self,
        draft: PendingSubmission,
        reporter_id: str,
        normalized_location: str,
    ) -> IssueRecord:
        key = submission_key(reporter_id, draft.submission_id) if draft.submission_id else None
        with self._lock:
            if key and key in self._by_submission_key:
                return self._issues[self._by_submission_key[key]]

            now = utcnow()
            record = IssueRecord(
                id=uuid.uuid4().hex,
                title=draft.title,
                description=draft.description,
                category=draft.category,
                priority=draft.priority,
                latitude=draft.latitude,
                longitude=draft.longitude,
                address=draft.address,
                normalized_location=normalized_location,
                image_url=draft.image_url,
                reporter_id=reporter_id,
                submission_id=draft.submission_id,
                created_at=now,
                updated_at=now,
            )
            self._issues[record.id] = record
            if key:
                self._by_submission_key[key] = record.id
        logger.info(f"Issue stored in memory: {record.id}")
        return record

    def get_issue(self, issue_id: str) -> Optional[IssueRecord]:
        with self._lock:
            return self._issues.get(issue_id)

    def get_issues_near(self, lat: float, lng: float, radius_km: float) -> List[IssueRecord]:
        box = bounding_box(lat, lng, radius_km)
        with self._lock:
            return [
                issue for issue in self._issues.values()
                if box.contains(issue.latitude, issue.longitude)
            ]

    def increment_validation_count(self, issue_id: str) -> int:
        with self._lock:
            issue = self._issues.get(issue_id)
            if issue is None:
                raise NotFoundError("Issue not found")
            updated = issue.model_copy(update={
                "validation_count": issue.validation_count + 1,
                "updated_at": utcnow(),
            })
            self._issues[issue_id] = updated
            return updated.validation_count

    def count_issues_by(self, reporter_id: str) -> int:
        with self._lock:
            return sum(1 for issue in self._issues.values() if issue.reporter_id == reporter_id)

    def record_validation(
        self,
        issue_id: str,
        user_id: str,
        is_valid: bool,
        comment: Optional[str] = None,
    ) -> None:
        with self._lock:
            self.validations.append({
                "issue_id": issue_id,
                "user_id": user_id,
                "is_valid": is_valid,
                "comment": comment,
                "created_at": utcnow(),
            })

    def find_by_submission_id(self, reporter_id: str, submission_id: str) -> Optional[IssueRecord]:
        with self._lock:
            issue_id = self._by_submission_key.get(submission_key(reporter_id, submission_id))
            return self._issues.get(issue_id) if issue_id else None

    def check_connection(self) -> Dict:
        with self._lock:
            return {"database": "memory", "connected": True, "issues_count": len(self._issues)}


class InMemoryPointsLedger(PointsLedger):

    def __init__(self):
        self._lock = threading.Lock()
        self._points: Dict[str, int] = defaultdict(int)

    def award(self, user_id: str, amount: int) -> None:
        with self._lock:
            self._points[user_id] += amount

    def get_points(self, user_id: str) -> int:
        with self._lock:
            return self._points.get(user_id, 0)


class InMemoryAchievementService(AchievementService):

    def __init__(self):
        self._lock = threading.Lock()
        self.achievements: Dict[tuple, Dict] = {}

    def grant_if_first(self, user_id: str, kind: str) -> bool:
        with self._lock:
            if (user_id, kind) in self.achievements:
                return False
            self.achievements[(user_id, kind)] = {
                "user_id": user_id,
                "type": kind,
                **ACHIEVEMENT_DEFINITIONS.get(kind, {"title": kind}),
                "unlocked_at": utcnow(),
            }
        logger.info(f"🏆 Achievement '{kind}' granted to {user_id}")
        return True
