import os

# Must be set before app.core.settings is imported anywhere
os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("SIMILARITY_PROVIDER", "heuristic")

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.issue import IssueCategory, IssueRecord, IssueStatus, PendingSubmission
from app.services.geo_candidates import GeoCandidateFinder, get_geo_candidate_finder
from app.services.realtime import RealtimeBroadcaster
from app.services.similarity import HeuristicSimilarityRanker
from app.services.store import get_issue_store
from app.services.store.memory_store import (
    InMemoryAchievementService,
    InMemoryIssueStore,
    InMemoryPointsLedger,
)
from app.services.submission_service import SubmissionCoordinator, get_submission_coordinator
from app.services.upvote_service import UpvoteHandler, get_upvote_handler
from app.utils.location import normalize_location

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class RecordingBroadcaster(RealtimeBroadcaster):
    def __init__(self):
        self.events = []
        self.fail = False

    async def publish(self, event):
        if self.fail:
            raise ConnectionError("broadcast channel down")
        self.events.append(event)


@pytest.fixture
def store():
    return InMemoryIssueStore()


@pytest.fixture
def points():
    return InMemoryPointsLedger()


@pytest.fixture
def achievements():
    return InMemoryAchievementService()


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def finder(store):
    return GeoCandidateFinder(store)


@pytest.fixture
def ranker():
    return HeuristicSimilarityRanker(threshold=0.5, max_results=10)


@pytest.fixture
def coordinator(store, finder, ranker, points, achievements, broadcaster):
    return SubmissionCoordinator(store, finder, ranker, points, achievements, broadcaster)


@pytest.fixture
def upvotes(store, points):
    return UpvoteHandler(store, points)


@pytest.fixture
def add_issue(store):
    """Insert an existing IssueRecord; later calls are created later."""
    ids = count(1)

    def _add(
        category=IssueCategory.POTHOLE,
        latitude=12.9,
        longitude=74.8,
        address="Bailpar Dandeli",
        title="Pothole on main road",
        description="Deep pothole",
        reporter_id="reporter-old",
        validation_count=0,
        status=IssueStatus.SUBMITTED,
        issue_id=None,
        created_at=None,
    ):
        n = next(ids)
        return store.add(IssueRecord(
            id=issue_id or f"issue-{n}",
            title=title,
            description=description,
            category=category,
            status=status,
            latitude=latitude,
            longitude=longitude,
            address=address,
            normalized_location=normalize_location(address),
            reporter_id=reporter_id,
            validation_count=validation_count,
            created_at=created_at or BASE_TIME + timedelta(minutes=n),
        ))

    return _add


def make_draft(**overrides):
    data = {
        "title": "Pothole on main road",
        "description": "Deep pothole",
        "category": "pothole",
        "latitude": 12.901,
        "longitude": 74.801,
        "address": "Bailpar District Dandeli",
    }
    data.update(overrides)
    return PendingSubmission(**data)


@pytest.fixture
def client(store, coordinator, upvotes, finder):
    app.dependency_overrides[get_submission_coordinator] = lambda: coordinator
    app.dependency_overrides[get_upvote_handler] = lambda: upvotes
    app.dependency_overrides[get_geo_candidate_finder] = lambda: finder
    app.dependency_overrides[get_issue_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
