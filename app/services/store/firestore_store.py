"""
Firestore-backed collaborators.

Collections:
- issues:        one document per IssueRecord (snake_case fields)
- validations:   community confirmations, written by upvotes/validations
- users:         points counter per user (merged, created on first award)
- achievements:  one document per (user, kind), id "{user_id}_{kind}"

Firestore allows a range filter on one field per query without a composite
index, so the bounding box filters latitude server-side and longitude in
process.
"""

import logging
from typing import Dict, List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists, NotFound
from pydantic import ValidationError

from app.config.firebase import get_db
from app.core.errors import NotFoundError
from app.models.issue import IssueRecord, PendingSubmission, utcnow
from app.services.store.base import (
    ACHIEVEMENT_DEFINITIONS,
    AchievementService,
    IssueStore,
    PointsLedger,
    submission_key,
)
from app.utils.firestore_helpers import where_between, where_filter
from app.utils.geo import bounding_box

logger = logging.getLogger(__name__)

ISSUES = "issues"
VALIDATIONS = "validations"
USERS = "users"
ACHIEVEMENTS = "achievements"


def _to_document(record: IssueRecord) -> Dict:
    data = record.model_dump(exclude={"id"})
    data["category"] = record.category.value
    data["priority"] = record.priority.value
    data["status"] = record.status.value
    return data


def _from_document(doc) -> Optional[IssueRecord]:
    data = doc.to_dict() or {}
    if data.get("latitude") is None or data.get("longitude") is None:
        logger.warning(f"Skipping issue {doc.id} without coordinates")
        return None
    data.pop("id", None)
    try:
        return IssueRecord(id=doc.id, **data)
    except ValidationError as e:
        logger.warning(f"Skipping unreadable issue {doc.id}: {e.error_count()} invalid field(s)")
        return None


class FirestoreIssueStore(IssueStore):

    def __init__(self, db=None):
        self.db = db or get_db()

    def create_issue(
        self,
        draft: PendingSubmission,
        reporter_id: str,
        normalized_location: str,
    ) -> IssueRecord:
        issues_ref = self.db.collection(ISSUES)
        # The reporter-scoped idempotency key doubles as the document id so
        # that create() rejects a second commit of the same draft.
        if draft.submission_id:
            doc_ref = issues_ref.document(submission_key(reporter_id, draft.submission_id))
        else:
            doc_ref = issues_ref.document()

        now = utcnow()
        record = IssueRecord(
            id=doc_ref.id,
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

        try:
            doc_ref.create(_to_document(record))
        except AlreadyExists:
            logger.info(f"Issue {doc_ref.id} already committed, returning stored record")
            existing = self.get_issue(doc_ref.id)
            if existing is None:
                raise
            return existing

        logger.info(f"Issue saved to Firestore: {doc_ref.id}")
        return record

    def get_issue(self, issue_id: str) -> Optional[IssueRecord]:
        doc = self.db.collection(ISSUES).document(issue_id).get()
        if not doc.exists:
            return None
        return _from_document(doc)

    def get_issues_near(self, lat: float, lng: float, radius_km: float) -> List[IssueRecord]:
        box = bounding_box(lat, lng, radius_km)
        query = where_between(self.db.collection(ISSUES), "latitude", box.min_lat, box.max_lat)

        issues = []
        for doc in query.stream():
            record = _from_document(doc)
            if record is not None and box.contains(record.latitude, record.longitude):
                issues.append(record)
        return issues

    def increment_validation_count(self, issue_id: str) -> int:
        doc_ref = self.db.collection(ISSUES).document(issue_id)
        try:
            doc_ref.update({
                "validation_count": firestore.Increment(1),
                "updated_at": firestore.SERVER_TIMESTAMP,
            })
        except NotFound as e:
            raise NotFoundError("Issue not found") from e

        snapshot = doc_ref.get()
        return int((snapshot.to_dict() or {}).get("validation_count", 0))

    def count_issues_by(self, reporter_id: str) -> int:
        query = where_filter(self.db.collection(ISSUES), "reporter_id", "==", reporter_id)
        return len(list(query.stream()))

    def record_validation(
        self,
        issue_id: str,
        user_id: str,
        is_valid: bool,
        comment: Optional[str] = None,
    ) -> None:
        self.db.collection(VALIDATIONS).document().set({
            "issue_id": issue_id,
            "user_id": user_id,
            "is_valid": is_valid,
            "comment": comment,
            "created_at": firestore.SERVER_TIMESTAMP,
        })

    def find_by_submission_id(self, reporter_id: str, submission_id: str) -> Optional[IssueRecord]:
        issue = self.get_issue(submission_key(reporter_id, submission_id))
        if issue is None or issue.reporter_id != reporter_id or issue.submission_id != submission_id:
            return None
        return issue

    def check_connection(self) -> Dict:
        collections = list(self.db.collections())
        return {"database": "firestore", "connected": True, "collections_count": len(collections)}


class FirestorePointsLedger(PointsLedger):

    def __init__(self, db=None):
        self.db = db or get_db()

    def award(self, user_id: str, amount: int) -> None:
        self.db.collection(USERS).document(user_id).set(
            {"points": firestore.Increment(amount), "updated_at": firestore.SERVER_TIMESTAMP},
            merge=True,
        )

    def get_points(self, user_id: str) -> int:
        doc = self.db.collection(USERS).document(user_id).get()
        if not doc.exists:
            return 0
        return int((doc.to_dict() or {}).get("points", 0))


class FirestoreAchievementService(AchievementService):

    def __init__(self, db=None):
        self.db = db or get_db()

    def grant_if_first(self, user_id: str, kind: str) -> bool:
        doc_ref = self.db.collection(ACHIEVEMENTS).document(f"{user_id}_{kind}")
        try:
            doc_ref.create({
                "user_id": user_id,
                "type": kind,
                **ACHIEVEMENT_DEFINITIONS.get(kind, {"title": kind}),
                "unlocked_at": firestore.SERVER_TIMESTAMP,
            })
        except AlreadyExists:
            return False
        logger.info(f"🏆 Achievement '{kind}' granted to {user_id}")
        return True
