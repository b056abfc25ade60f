"""
Similarity Ranker Registry.

Selects the configured ranker once. A model-backed ranker that cannot run
(AI disabled, no API key) is replaced by the heuristic at selection time;
runtime failures of the selected ranker degrade to an empty result
inside SimilarityRanker.rank().
"""

from typing import Optional
import logging

from app.core.settings import settings
from app.services.similarity.base import SimilarityRanker
from app.services.similarity.gemini_ranker import GeminiSimilarityRanker
from app.services.similarity.heuristic import HeuristicSimilarityRanker

logger = logging.getLogger(__name__)

_ranker: Optional[SimilarityRanker] = None


def build_similarity_ranker(provider_name: str = None) -> SimilarityRanker:
    provider_name = (provider_name or settings.SIMILARITY_PROVIDER or "heuristic").lower()

    if provider_name == "gemini":
        ranker = GeminiSimilarityRanker()
        if ranker.is_enabled():
            return ranker
        logger.warning("⚠️ SIMILARITY_PROVIDER=gemini but Gemini is unavailable, using heuristic ranker")
    elif provider_name != "heuristic":
        logger.warning(f"⚠️ Unknown SIMILARITY_PROVIDER '{provider_name}', using heuristic ranker")

    return HeuristicSimilarityRanker()


def get_similarity_ranker() -> SimilarityRanker:
    """
    Get or create the configured SimilarityRanker singleton.
    """
    global _ranker
    if _ranker is None:
        _ranker = build_similarity_ranker()
        logger.info(f"✅ Similarity ranker registered: {_ranker.PROVIDER_NAME}")
    return _ranker
