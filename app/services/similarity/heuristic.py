"""
Heuristic Similarity Ranker - deterministic default backend.

Score = weighted sum of three signals, each in [0, 1]:
- category:  1.0 when the issue types are equal
- location:  overlap of normalized address keys (or proximity when an
             address is missing on either side)
- text:      word overlap of title + description

A category mismatch halves the already category-less score, which keeps
it far below the surfacing threshold whatever the other signals say.
"""

from difflib import SequenceMatcher
from typing import List, Set
import logging

from app.models.issue import CandidateIssue, SimilarityQuery
from app.services.similarity.base import ScoredCandidate, SimilarityRanker
from app.utils.geo import haversine_meters
from app.utils.location import blank_punctuation

logger = logging.getLogger(__name__)

REASON_SAME_LOCATION = "Same location area"
REASON_SAME_TYPE = "Same issue type"
REASON_SIMILAR_DESCRIPTION = "Similar description"

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "is", "are", "was", "in", "on", "at", "to",
    "of", "for", "near", "by", "with", "from", "this", "that", "it", "there",
    "very", "some", "has", "have",
})


def _tokens(text: str) -> Set[str]:
    words = blank_punctuation((text or "").lower()).split()
    return {w for w in words if len(w) > 1 and w not in STOP_WORDS}


def jaccard(a: Set[str], b: Set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


class HeuristicSimilarityRanker(SimilarityRanker):
    """
    Weighted-signal ranker. No network, no randomness.
    """

    PROVIDER_NAME = "heuristic-v1"

    CATEGORY_WEIGHT = 0.45
    LOCATION_WEIGHT = 0.40
    TEXT_WEIGHT = 0.15
    CATEGORY_MISMATCH_FACTOR = 0.5

    # A signal only earns a reason string above these values
    LOCATION_REASON_MIN = 0.6
    TEXT_REASON_MIN = 0.3

    # Character-level ratio below this is noise, not a spelling variant
    FUZZY_LOCATION_MIN = 0.75

    # Distance at which proximity-only location similarity reaches 0
    PROXIMITY_SCALE_METERS = 500.0

    def is_enabled(self) -> bool:
        return True

    def score_candidates(
        self,
        query: SimilarityQuery,
        candidates: List[CandidateIssue],
    ) -> List[ScoredCandidate]:
        query_words = _tokens(f"{query.title} {query.description}")

        scored = []
        for candidate in candidates:
            category = 1.0 if candidate.category == query.category else 0.0
            location = self.location_similarity(query, candidate)
            text = jaccard(query_words, _tokens(f"{candidate.title} {candidate.description}"))

            score = (
                self.CATEGORY_WEIGHT * category
                + self.LOCATION_WEIGHT * location
                + self.TEXT_WEIGHT * text
            )
            if not category:
                score *= self.CATEGORY_MISMATCH_FACTOR

            reasons = []
            if location >= self.LOCATION_REASON_MIN:
                reasons.append(REASON_SAME_LOCATION)
            if category:
                reasons.append(REASON_SAME_TYPE)
            if text >= self.TEXT_REASON_MIN:
                reasons.append(REASON_SIMILAR_DESCRIPTION)

            scored.append(ScoredCandidate(candidate.id, round(min(score, 1.0), 3), reasons))
        return scored

    def location_similarity(self, query: SimilarityQuery, candidate: CandidateIssue) -> float:
        a = query.normalized_location
        b = candidate.normalized_location
        if a and b:
            if a == b:
                return 1.0
            token_overlap = jaccard(set(a.split()), set(b.split()))
            fuzzy = SequenceMatcher(None, a, b).ratio()
            return max(token_overlap, fuzzy if fuzzy >= self.FUZZY_LOCATION_MIN else 0.0)

        # No address text on one side: fall back to distance
        if query.latitude is not None and query.longitude is not None:
            meters = haversine_meters(query.latitude, query.longitude, candidate.latitude, candidate.longitude)
            return max(0.0, 1.0 - meters / self.PROXIMITY_SCALE_METERS)

        return 0.0
