"""
Upvote Service - reinforce an existing issue instead of creating a new one.

This is how a reporter resolves an AWAITING_DECISION submission without a
new IssueRecord: the draft is dropped and the chosen existing issue gets a
validation, a +1 validation count and the reporter gets points.
"""

from typing import Dict, Optional
import logging

from app.core.errors import NotFoundError
from app.core.settings import settings
from app.services.store import IssueStore, PointsLedger, get_issue_store, get_points_ledger

logger = logging.getLogger(__name__)

UPVOTE_NOTE = "Upvoted via similar issues dialog"


class UpvoteHandler:
    """Service for community upvotes and validations on issues."""

    def __init__(self, store: IssueStore, points: PointsLedger):
        self.store = store
        self.points = points

    def _require_issue(self, issue_id: str) -> None:
        if not issue_id or self.store.get_issue(issue_id) is None:
            raise NotFoundError("Issue not found")

    def upvote(self, issue_id: str, user_id: str) -> Dict:
        """
        Upvote an existing issue.

        Args:
            issue_id: Issue chosen from the similar-issues list
            user_id: Acting user

        Returns:
            {"validationCount": int}

        Raises:
            NotFoundError: unknown issue (no validation, no points, no increment)
        """
        self._require_issue(issue_id)

        self.store.record_validation(issue_id, user_id, is_valid=True, comment=UPVOTE_NOTE)
        validation_count = self.store.increment_validation_count(issue_id)
        self.points.award(user_id, settings.UPVOTE_POINTS)

        logger.info(f"👍 Issue {issue_id} upvoted by {user_id} (validations: {validation_count})")
        return {"validationCount": validation_count}

    def validate(
        self,
        issue_id: str,
        user_id: str,
        is_valid: bool,
        comment: Optional[str] = None,
    ) -> Dict:
        """
        Record a community validation (confirm or dispute).

        Only confirmations raise the validation count; both earn points.
        """
        self._require_issue(issue_id)

        self.store.record_validation(issue_id, user_id, is_valid=is_valid, comment=comment)
        if is_valid:
            validation_count = self.store.increment_validation_count(issue_id)
        else:
            validation_count = self.store.get_issue(issue_id).validation_count
        self.points.award(user_id, settings.VALIDATION_POINTS)

        logger.info(f"Issue {issue_id} validated by {user_id} (is_valid={is_valid})")
        return {"validationCount": validation_count}


# Global service instance
_upvote_handler: Optional[UpvoteHandler] = None


def get_upvote_handler() -> UpvoteHandler:
    """Get or create UpvoteHandler singleton."""
    global _upvote_handler
    if _upvote_handler is None:
        _upvote_handler = UpvoteHandler(get_issue_store(), get_points_ledger())
    return _upvote_handler
