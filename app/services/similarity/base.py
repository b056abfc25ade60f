"""
Similarity Ranker Base Interface.

Defines the contract for similar-issue rankers. A backend only scores
candidates; the base class owns the guarantees every caller relies on:

- similarity is clamped to [0.0, 1.0]
- a candidate of a different category is never surfaced
- only scores >= threshold with at least one reason are returned
- order is score descending, then candidate creation time ascending
- at most max_results matches
- rank() never raises; a failing backend yields [] (treated as
  "not a duplicate", so submission is never blocked)
"""

from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional
import logging
import math

from app.core.settings import settings
from app.models.issue import CandidateIssue, SimilarityMatch, SimilarityQuery

logger = logging.getLogger(__name__)


class ScoredCandidate(NamedTuple):
    """Raw backend output for one candidate."""
    candidate_id: str
    score: float
    reasons: List[str]


class SimilarityRanker(ABC):
    """
    Abstract base class for similarity rankers.

    Subclasses implement score_candidates(); callers use rank().
    """

    PROVIDER_NAME = "base"

    def __init__(self, threshold: Optional[float] = None, max_results: Optional[int] = None):
        self.threshold = settings.SIMILARITY_THRESHOLD if threshold is None else threshold
        self.max_results = settings.MAX_SIMILAR_RESULTS if max_results is None else max_results

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if this ranker can run (credentials present, etc.).

        Returns:
            True if ready, False otherwise
        """
        pass

    @abstractmethod
    def score_candidates(
        self,
        query: SimilarityQuery,
        candidates: List[CandidateIssue],
    ) -> List[ScoredCandidate]:
        """
        Score candidates against the new issue.

        May raise; rank() turns any failure into an empty result.
        Candidates the backend considers unrelated may be omitted.
        """
        pass

    def rank(self, query: SimilarityQuery, candidates: List[CandidateIssue]) -> List[SimilarityMatch]:
        """
        Ranked, reasoned, thresholded matches for the new issue.

        Args:
            query: The new issue as seen by the ranker
            candidates: Existing issues from the geographic window

        Returns:
            List of SimilarityMatch (possibly empty)
        """
        if not candidates:
            return []

        try:
            scored = self.score_candidates(query, candidates)
            matches = self._finalize(query, candidates, scored)
        except Exception as e:
            logger.warning(
                f"⚠️ Similarity ranking degraded ({self.PROVIDER_NAME}), assuming no duplicates: {e}",
                exc_info=True,
            )
            return []

        logger.info(
            f"Similarity ranking ({self.PROVIDER_NAME}): {len(matches)} match(es) "
            f"from {len(candidates)} candidate(s)"
        )
        return matches

    def _finalize(
        self,
        query: SimilarityQuery,
        candidates: List[CandidateIssue],
        scored: List[ScoredCandidate],
    ) -> List[SimilarityMatch]:
        by_id: Dict[str, CandidateIssue] = {c.id: c for c in candidates}
        best: Dict[str, SimilarityMatch] = {}

        for item in scored:
            candidate = by_id.get(item.candidate_id)
            if candidate is None:
                continue

            # Category veto, regardless of what the backend said
            if candidate.category != query.category:
                continue

            score = float(item.score)
            if math.isnan(score):
                continue
            score = max(0.0, min(1.0, score))

            reasons = [r.strip() for r in (item.reasons or []) if isinstance(r, str) and r.strip()]
            if score < self.threshold or not reasons:
                continue

            previous = best.get(candidate.id)
            if previous is not None and previous.similarity >= score:
                continue

            best[candidate.id] = SimilarityMatch(
                id=candidate.id,
                title=candidate.title,
                description=candidate.description,
                similarity=score,
                reasons=reasons,
                reported_by=candidate.reporter_id,
                created_at=candidate.created_at,
                validation_count=candidate.validation_count,
                status=candidate.status,
            )

        matches = sorted(best.values(), key=lambda m: (-m.similarity, m.created_at))
        return matches[:self.max_results]
