"""
Gemini Similarity Ranker - optional model-backed backend.

Asks Gemini whether nearby reports describe the same physical problem
(different wording, photo angle or address spelling). Requires
GEMINI_API_KEY. Any transport or parsing failure propagates to
SimilarityRanker.rank(), which degrades to "no similar issues".
"""

from typing import Dict, List
import json
import logging

import requests

from app.core.settings import settings
from app.models.issue import CandidateIssue, SimilarityQuery
from app.services.similarity.base import ScoredCandidate, SimilarityRanker

logger = logging.getLogger(__name__)


class GeminiSimilarityRanker(SimilarityRanker):
    """
    Google Gemini generateContent over HTTP.
    """

    PROVIDER_NAME = "gemini"
    API_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(self, api_key: str = None, model: str = None, timeout_seconds: float = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.timeout_seconds = timeout_seconds or settings.AI_TIMEOUT_SECONDS
        self.enabled = bool(settings.AI_ENABLED and self.api_key and self.api_key.strip())

        if self.enabled:
            logger.info(f"✅ Gemini similarity ranker initialized: {self.model}")
        else:
            logger.info("⚠️ Gemini similarity ranker disabled: No API key configured")

    def is_enabled(self) -> bool:
        return self.enabled

    def score_candidates(
        self,
        query: SimilarityQuery,
        candidates: List[CandidateIssue],
    ) -> List[ScoredCandidate]:
        if not self.enabled:
            raise RuntimeError("Gemini API key not configured")

        text = self._call_gemini_api(self._build_prompt(query, candidates))
        return self._parse_response(text, candidates)

    def _build_prompt(self, query: SimilarityQuery, candidates: List[CandidateIssue]) -> str:
        existing = "\n\n".join(
            f"{index}. ID: {c.id}\n"
            f"  Title: {c.title}\n"
            f"  Category: {c.category.value}\n"
            f"  Description: {c.description}\n"
            f"  Location: {c.normalized_location}\n"
            f"  Status: {c.status.value}\n"
            f"  Validations: {c.validation_count}\n"
            f"  Has Image: {'Yes' if c.has_image else 'No'}"
            for index, c in enumerate(candidates, start=1)
        )

        return f"""You compare civic issue reports and find the ones describing the SAME physical problem.

NEW ISSUE:
Title: {query.title}
Category: {query.category.value}
Description: {query.description}
Location: {query.normalized_location}
Has Image: {'Yes' if query.has_image else 'No'}

EXISTING ISSUES:
{existing}

RULES:
- The same pothole/light/dump may be described with different words or photographed from another angle
- Location text varies in spelling and administrative qualifiers ("bailpar dandeli" = "bailpar uttar kannada dandeli")
- Only flag an existing issue if it is likely the SAME physical problem
- Use 0.5-0.9 for possibly the same issue, above 0.9 for very likely the same issue
- Give at least one short reason per flagged issue

Respond with JSON only:
{{
  "similarIssues": [
    {{"issueIndex": 1, "similarity": 0.85, "reasons": ["Same location area", "Same issue type"]}}
  ]
}}"""

    def _call_gemini_api(self, prompt: str) -> str:
        url = self.API_URL_TEMPLATE.format(model=self.model)
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

        response = requests.post(
            url,
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout_seconds,
        )
        if response.status_code != 200:
            raise RuntimeError(f"Gemini API returned status {response.status_code}: {response.text[:200]}")

        data = response.json()
        text = data.get("candidates", [{}])[0].get("content", {}).get("parts", [{}])[0].get("text", "")
        if not text:
            raise ValueError("Empty response from Gemini model")
        return text

    def _parse_response(self, text: str, candidates: List[CandidateIssue]) -> List[ScoredCandidate]:
        # The model sometimes wraps JSON in a markdown fence
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0].strip()
        elif "```" in text:
            text = text.split("```")[1].split("```")[0].strip()

        parsed: Dict = json.loads(text)
        entries = parsed.get("similarIssues") or []
        if not isinstance(entries, list):
            raise ValueError("similarIssues is not a list")

        scored = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                index = int(entry.get("issueIndex"))
                similarity = float(entry.get("similarity", 0))
            except (TypeError, ValueError):
                logger.debug(f"Ignoring malformed Gemini entry: {entry}")
                continue
            if not 1 <= index <= len(candidates):
                continue
            reasons = entry.get("reasons") or []
            if not isinstance(reasons, list):
                reasons = []
            scored.append(ScoredCandidate(candidates[index - 1].id, similarity, reasons))
        return scored
