"""
Persistence and gamification collaborators.

The submission pipeline only talks to these interfaces. Two backends
implement them: Firestore (production) and in-memory (mock mode, tests).

Contract shared by all implementations:
- increment_validation_count and PointsLedger.award MUST be atomic at the
  store; concurrent upvotes on one issue may not lose increments.
- create_issue with a submission_id MUST be create-or-get per reporter: a
  second commit of the same draft by the same reporter returns the first
  record. The same key from another reporter is an unrelated draft.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import Dict, List, Optional

from app.models.issue import IssueRecord, PendingSubmission


FIRST_REPORTER = "first_reporter"

ACHIEVEMENT_DEFINITIONS: Dict[str, Dict[str, str]] = {
    FIRST_REPORTER: {
        "title": "First Reporter",
        "description": "Submitted your first civic issue report",
        "icon_name": "fas fa-camera-retro",
    },
}


def submission_key(reporter_id: str, submission_id: str) -> str:
    """Stable id for (reporter, idempotency key); safe as a Firestore document id."""
    return hashlib.sha256(f"{reporter_id}\n{submission_id}".encode("utf-8")).hexdigest()


class IssueStore(ABC):
    """Issue persistence."""

    @abstractmethod
    def create_issue(
        self,
        draft: PendingSubmission,
        reporter_id: str,
        normalized_location: str,
    ) -> IssueRecord:
        """Persist a draft as a new IssueRecord (validation/comment counts start at 0)."""

    @abstractmethod
    def get_issue(self, issue_id: str) -> Optional[IssueRecord]:
        """Return the issue or None."""

    @abstractmethod
    def get_issues_near(self, lat: float, lng: float, radius_km: float) -> List[IssueRecord]:
        """Issues inside the bounding box of radius_km around (lat, lng)."""

    @abstractmethod
    def increment_validation_count(self, issue_id: str) -> int:
        """Atomically add 1 and return the new count. Raises NotFoundError."""

    @abstractmethod
    def count_issues_by(self, reporter_id: str) -> int:
        pass

    @abstractmethod
    def record_validation(
        self,
        issue_id: str,
        user_id: str,
        is_valid: bool,
        comment: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    def find_by_submission_id(self, reporter_id: str, submission_id: str) -> Optional[IssueRecord]:
        """The issue this reporter already committed under submission_id, or None."""

    @abstractmethod
    def check_connection(self) -> Dict:
        """Lightweight connectivity probe for the health endpoint."""


class PointsLedger(ABC):
    """Gamification points."""

    @abstractmethod
    def award(self, user_id: str, amount: int) -> None:
        pass

    @abstractmethod
    def get_points(self, user_id: str) -> int:
        pass


class AchievementService(ABC):
    """One-time badges."""

    @abstractmethod
    def grant_if_first(self, user_id: str, kind: str) -> bool:
        """Grant the achievement unless the user already holds it. Returns True if granted."""
