"""
Geo candidate search - existing issues near a point.

Two call sites use different radii (both from settings):
- new-issue submission: SUBMISSION_SEARCH_RADIUS_KM (0.5 km)
- map "nearby issues" browsing: NEARBY_SEARCH_RADIUS_KM (5 km)
"""

import logging
from typing import List, Optional

from app.models.issue import CandidateIssue, IssueRecord
from app.services.store import IssueStore, get_issue_store
from app.utils.geo import bounding_box, haversine_meters

logger = logging.getLogger(__name__)


class GeoCandidateFinder:
    """Bounding-box search over the issue store."""

    def __init__(self, store: IssueStore):
        self.store = store

    def find_records_near(
        self,
        lat: Optional[float],
        lng: Optional[float],
        radius_km: float,
    ) -> List[IssueRecord]:
        """
        All IssueRecords inside the box, nothing strictly outside it.

        Missing coordinates or a non-positive radius yield an empty list.
        """
        if lat is None or lng is None or radius_km is None or radius_km <= 0:
            return []

        box = bounding_box(lat, lng, radius_km)
        records = [
            record for record in self.store.get_issues_near(lat, lng, radius_km)
            if box.contains(record.latitude, record.longitude)
        ]
        logger.debug(f"{len(records)} issue(s) within {radius_km} km of ({lat}, {lng})")
        return records

    def find_near(
        self,
        lat: Optional[float],
        lng: Optional[float],
        radius_km: float,
    ) -> List[CandidateIssue]:
        return [CandidateIssue.from_record(record) for record in self.find_records_near(lat, lng, radius_km)]


def nearest_first(
    candidates: List[CandidateIssue],
    lat: float,
    lng: float,
    limit: int,
) -> List[CandidateIssue]:
    """Closest `limit` candidates, used to bound ranking work."""
    ordered = sorted(
        candidates,
        key=lambda c: (haversine_meters(lat, lng, c.latitude, c.longitude), c.created_at),
    )
    return ordered[:limit]


_finder: Optional[GeoCandidateFinder] = None


def get_geo_candidate_finder() -> GeoCandidateFinder:
    global _finder
    if _finder is None:
        _finder = GeoCandidateFinder(get_issue_store())
    return _finder
