"""
Similar-issue ranking.

A pluggable ranker decides which nearby issues describe the same physical
problem as a new submission. Fails gracefully and never blocks submission.
"""

from app.services.similarity.base import ScoredCandidate, SimilarityRanker
from app.services.similarity.gemini_ranker import GeminiSimilarityRanker
from app.services.similarity.heuristic import HeuristicSimilarityRanker
from app.services.similarity.registry import build_similarity_ranker, get_similarity_ranker

__all__ = [
    "GeminiSimilarityRanker",
    "HeuristicSimilarityRanker",
    "ScoredCandidate",
    "SimilarityRanker",
    "build_similarity_ranker",
    "get_similarity_ranker",
]
