"""
Submission Coordinator - two-phase new-issue submission.

    DRAFTING -> CANDIDATES_SEARCHED -> AWAITING_DECISION   (similar issues found)
                                    -> COMMITTED           (none found)
    DRAFTING -> COMMITTED                                  (skipDuplicateCheck)

DESIGN PRINCIPLES:
- Stateless between requests: on AWAITING_DECISION the draft is echoed to
  the caller, nothing is persisted, and an abandoned decision leaves no trace
- The search phase is read-only and safe to retry
- A draft is committed at most once per request; never both committed and
  upvoted in the same round
- Duplicate detection assists, it never blocks: ranking failures mean
  "no similar issues"
- Concurrent near-identical submissions may both commit; this is
  best-effort detection, not a uniqueness constraint
"""

from enum import Enum
from typing import List, Optional, Union
import logging

from app.core.errors import ClientError, PersistenceError
from app.core.settings import settings
from app.models.issue import (
    IssueRecord,
    PendingSubmission,
    SimilarIssuesResponse,
    SimilarityMatch,
    SimilarityQuery,
)
from app.services.geo_candidates import GeoCandidateFinder, get_geo_candidate_finder, nearest_first
from app.services.realtime import RealtimeBroadcaster, get_broadcaster
from app.services.similarity import SimilarityRanker, get_similarity_ranker
from app.services.store import (
    FIRST_REPORTER,
    AchievementService,
    IssueStore,
    PointsLedger,
    get_achievement_service,
    get_issue_store,
    get_points_ledger,
)
from app.utils.location import normalize_location

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    DRAFTING = "drafting"
    CANDIDATES_SEARCHED = "candidates_searched"
    AWAITING_DECISION = "awaiting_decision"
    COMMITTED = "committed"


class SubmissionResult:
    """
    Outcome of one submit() call.

    Exactly one of `issue` (COMMITTED) or `similar` (AWAITING_DECISION) is set.
    `transitions` is the state trail, starting at DRAFTING.
    """

    def __init__(
        self,
        transitions: List[SubmissionState],
        issue: Optional[IssueRecord] = None,
        similar: Optional[SimilarIssuesResponse] = None,
        replayed: bool = False,
    ):
        self.transitions = transitions
        self.issue = issue
        self.similar = similar
        self.replayed = replayed  # commit already happened under this submissionId

    @property
    def state(self) -> SubmissionState:
        return self.transitions[-1]

    @property
    def committed(self) -> bool:
        return self.state == SubmissionState.COMMITTED

    def to_response(self) -> Union[IssueRecord, SimilarIssuesResponse]:
        return self.issue if self.committed else self.similar


class SubmissionCoordinator:
    """
    Orchestrates candidate search, similarity ranking and commit.
    """

    def __init__(
        self,
        store: IssueStore,
        finder: GeoCandidateFinder,
        ranker: SimilarityRanker,
        points: PointsLedger,
        achievements: AchievementService,
        broadcaster: RealtimeBroadcaster,
    ):
        self.store = store
        self.finder = finder
        self.ranker = ranker
        self.points = points
        self.achievements = achievements
        self.broadcaster = broadcaster

    @staticmethod
    def _require_coordinates(draft: PendingSubmission) -> None:
        if draft.latitude is None or draft.longitude is None:
            raise ClientError("Latitude and longitude are required to submit an issue")

    def search_similar(self, draft: PendingSubmission) -> List[SimilarityMatch]:
        """
        Read-only search phase: normalize, find nearby candidates, rank.

        Safe to call any number of times for the same draft.
        """
        self._require_coordinates(draft)

        candidates = self.finder.find_near(
            draft.latitude,
            draft.longitude,
            settings.SUBMISSION_SEARCH_RADIUS_KM,
        )
        if not candidates:
            return []

        if len(candidates) > settings.MAX_RANKING_CANDIDATES:
            logger.info(
                f"Capping {len(candidates)} candidates to the nearest {settings.MAX_RANKING_CANDIDATES}"
            )
            candidates = nearest_first(
                candidates, draft.latitude, draft.longitude, settings.MAX_RANKING_CANDIDATES
            )

        query = SimilarityQuery(
            title=draft.title,
            description=draft.description or "",
            category=draft.category,
            normalized_location=normalize_location(draft.address),
            has_image=bool(draft.image_url),
            latitude=draft.latitude,
            longitude=draft.longitude,
        )
        return self.ranker.rank(query, candidates)

    async def submit(self, draft: PendingSubmission, reporter_id: str) -> SubmissionResult:
        """
        Run the submission state machine for one request.

        Raises:
            ClientError: missing reporter or coordinates (nothing searched or written)
            PersistenceError: the store failed to create the issue
        """
        if not reporter_id:
            raise ClientError("Reporter identity is required to submit an issue")
        self._require_coordinates(draft)

        transitions = [SubmissionState.DRAFTING]

        if draft.submission_id:
            existing = self.store.find_by_submission_id(reporter_id, draft.submission_id)
            if existing is not None and existing.reporter_id == reporter_id:
                logger.info(f"Submission {draft.submission_id} already committed as issue {existing.id}")
                transitions.append(SubmissionState.COMMITTED)
                return SubmissionResult(transitions, issue=existing, replayed=True)

        if not draft.skip_duplicate_check:
            matches = self.search_similar(draft)
            transitions.append(SubmissionState.CANDIDATES_SEARCHED)

            if matches:
                logger.info(f"🔎 {len(matches)} similar issue(s) found, awaiting reporter decision")
                transitions.append(SubmissionState.AWAITING_DECISION)
                return SubmissionResult(
                    transitions,
                    similar=SimilarIssuesResponse(similar_issues=matches, submitted_issue=draft),
                )

        issue = await self._commit(draft, reporter_id)
        transitions.append(SubmissionState.COMMITTED)
        return SubmissionResult(transitions, issue=issue)

    async def _commit(self, draft: PendingSubmission, reporter_id: str) -> IssueRecord:
        """
        Persist the draft, then run side effects in order:
        points -> first-reporter achievement -> broadcast.

        Nothing runs if the store write fails.
        """
        try:
            issue = self.store.create_issue(draft, reporter_id, normalize_location(draft.address))
        except Exception as e:
            logger.error(f"❌ Failed to persist issue for reporter {reporter_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create issue: {e}") from e

        logger.info(f"✅ Issue committed: {issue.id} ({issue.category.value})")

        # The record exists from here on; side-effect failures are logged
        # rather than turning a successful commit into an error.
        try:
            self.points.award(reporter_id, settings.REPORT_POINTS)
        except Exception as e:
            logger.error(f"Failed to award report points to {reporter_id}: {e}", exc_info=True)

        try:
            if self.store.count_issues_by(reporter_id) == 1:
                self.achievements.grant_if_first(reporter_id, FIRST_REPORTER)
        except Exception as e:
            logger.error(f"Failed to evaluate first-reporter achievement for {reporter_id}: {e}", exc_info=True)

        try:
            await self.broadcaster.publish({
                "type": "new_issue",
                "issue": issue.model_dump(mode="json", by_alias=True),
            })
        except Exception as e:
            logger.warning(f"⚠️ Broadcast of new issue {issue.id} failed: {e}")

        return issue


# Global service instance
_coordinator: Optional[SubmissionCoordinator] = None


def get_submission_coordinator() -> SubmissionCoordinator:
    """Get or create SubmissionCoordinator singleton."""
    global _coordinator
    if _coordinator is None:
        _coordinator = SubmissionCoordinator(
            store=get_issue_store(),
            finder=get_geo_candidate_finder(),
            ranker=get_similarity_ranker(),
            points=get_points_ledger(),
            achievements=get_achievement_service(),
            broadcaster=get_broadcaster(),
        )
    return _coordinator
