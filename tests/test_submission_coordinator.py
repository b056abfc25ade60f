import asyncio

import pytest

from app.core.errors import ClientError, PersistenceError
from app.models.issue import IssueCategory
from app.services.store import FIRST_REPORTER
from app.services.store.memory_store import InMemoryIssueStore
from app.services.geo_candidates import GeoCandidateFinder
from app.services.submission_service import SubmissionCoordinator, SubmissionState

from conftest import make_draft


def submit(coordinator, draft, reporter_id="reporter-new"):
    return asyncio.run(coordinator.submit(draft, reporter_id))


def test_similar_issue_awaits_decision(coordinator, store, points, broadcaster, add_issue):
    existing = add_issue(category=IssueCategory.POTHOLE, latitude=12.9, longitude=74.8,
                         address="Bailpar Dandeli")

    result = submit(coordinator, make_draft())

    assert result.transitions == [
        SubmissionState.DRAFTING,
        SubmissionState.CANDIDATES_SEARCHED,
        SubmissionState.AWAITING_DECISION,
    ]
    assert not result.committed
    assert result.issue is None
    match = result.similar.similar_issues[0]
    assert match.id == existing.id
    assert match.similarity >= 0.85
    assert "Same location area" in match.reasons
    assert result.similar.submitted_issue.title == "Pothole on main road"
    assert result.similar.can_proceed_anyway is True

    # Nothing persisted, no side effects
    assert len(store.all_issues()) == 1
    assert points.get_points("reporter-new") == 0
    assert broadcaster.events == []


def test_different_category_commits(coordinator, store, add_issue):
    add_issue(category=IssueCategory.LIGHTING, title="Streetlight off", description="")

    result = submit(coordinator, make_draft())

    assert result.state == SubmissionState.COMMITTED
    assert result.similar is None
    assert len(store.all_issues()) == 2


def test_empty_area_commits_with_side_effects(coordinator, store, points, achievements, broadcaster):
    result = submit(coordinator, make_draft(imageUrl="https://example.com/p.jpg"))

    assert result.transitions == [
        SubmissionState.DRAFTING,
        SubmissionState.CANDIDATES_SEARCHED,
        SubmissionState.COMMITTED,
    ]
    issue = result.issue
    assert issue.validation_count == 0
    assert issue.comment_count == 0
    assert issue.normalized_location == "bailpar dandeli"
    assert issue.reporter_id == "reporter-new"
    assert issue.has_image
    assert store.get_issue(issue.id) == issue

    assert points.get_points("reporter-new") == 10
    assert ("reporter-new", FIRST_REPORTER) in achievements.achievements
    assert broadcaster.events[0]["type"] == "new_issue"
    assert broadcaster.events[0]["issue"]["id"] == issue.id
    assert broadcaster.events[0]["issue"]["validationCount"] == 0


def test_skip_duplicate_check_commits_directly(coordinator, store, add_issue):
    add_issue()

    result = submit(coordinator, make_draft(skipDuplicateCheck=True))

    assert result.transitions == [SubmissionState.DRAFTING, SubmissionState.COMMITTED]
    assert len(store.all_issues()) == 2


def test_resubmitting_echoed_draft_commits(coordinator, store, add_issue):
    add_issue()

    first = submit(coordinator, make_draft())
    echoed = first.similar.submitted_issue.model_copy(update={"skip_duplicate_check": True})
    second = submit(coordinator, echoed)

    assert second.committed
    assert second.issue.title == echoed.title
    assert len(store.all_issues()) == 2


def test_first_reporter_granted_once(coordinator, achievements):
    submit(coordinator, make_draft(latitude=10.0, longitude=76.0))
    submit(coordinator, make_draft(latitude=20.0, longitude=80.0))

    assert len(achievements.achievements) == 1
    assert not achievements.grant_if_first("reporter-new", FIRST_REPORTER)


def test_same_submission_id_commits_once(coordinator, store, points, broadcaster):
    draft = make_draft(submissionId="client-key-1", skipDuplicateCheck=True)

    first = submit(coordinator, draft)
    second = submit(coordinator, draft)

    assert second.replayed
    assert second.issue.id == first.issue.id
    assert len(store.all_issues()) == 1
    assert points.get_points("reporter-new") == 10
    assert len(broadcaster.events) == 1


def test_submission_id_is_scoped_to_reporter(coordinator, store, points):
    submit(coordinator, make_draft(submissionId="k1", skipDuplicateCheck=True), reporter_id="reporter-a")

    other = make_draft(
        submissionId="k1",
        title="Flooded underpass",
        category="flooding",
        latitude=15.25,
        longitude=74.62,
        address="Haliyal Road Dandeli",
    )
    result = submit(coordinator, other, reporter_id="reporter-b")

    assert not result.replayed
    assert result.committed
    assert result.issue.reporter_id == "reporter-b"
    assert result.issue.title == "Flooded underpass"
    assert len(store.all_issues()) == 2
    assert points.get_points("reporter-b") == 10
    assert store.find_by_submission_id("reporter-a", "k1").reporter_id == "reporter-a"
    assert store.find_by_submission_id("reporter-b", "k1").id == result.issue.id


def test_similar_then_upvote_creates_no_issue(coordinator, upvotes, store, points, add_issue):
    existing = add_issue(validation_count=3)

    result = submit(coordinator, make_draft())
    assert result.state == SubmissionState.AWAITING_DECISION
    chosen = result.similar.similar_issues[0]

    upvotes.upvote(chosen.id, "reporter-new")

    assert chosen.id == existing.id
    assert store.get_issue(existing.id).validation_count == 4
    assert points.get_points("reporter-new") == 2
    assert len(store.all_issues()) == 1
    assert store.validations[-1]["user_id"] == "reporter-new"


def test_missing_coordinates_rejected(coordinator, store):
    with pytest.raises(ClientError):
        submit(coordinator, make_draft(latitude=None))

    assert store.all_issues() == []


def test_missing_reporter_rejected(coordinator, store):
    with pytest.raises(ClientError):
        submit(coordinator, make_draft(), reporter_id="")

    assert store.all_issues() == []


class FailingStore(InMemoryIssueStore):
    def create_issue(self, draft, reporter_id, normalized_location):
        raise TimeoutError("deadline exceeded")


def test_persistence_failure_has_no_side_effects(ranker, points, achievements, broadcaster):
    failing = FailingStore()
    coordinator = SubmissionCoordinator(
        failing, GeoCandidateFinder(failing), ranker, points, achievements, broadcaster
    )

    with pytest.raises(PersistenceError):
        submit(coordinator, make_draft())

    assert points.get_points("reporter-new") == 0
    assert achievements.achievements == {}
    assert broadcaster.events == []


def test_broadcast_failure_does_not_fail_commit(coordinator, store, broadcaster):
    broadcaster.fail = True

    result = submit(coordinator, make_draft())

    assert result.committed
    assert store.get_issue(result.issue.id) is not None


def test_ranker_failure_treated_as_no_duplicates(coordinator, ranker, store, add_issue, monkeypatch):
    add_issue()

    def broken(query, candidates):
        raise RuntimeError("ranker crashed")

    monkeypatch.setattr(ranker, "score_candidates", broken)

    result = submit(coordinator, make_draft())

    assert result.committed
    assert len(store.all_issues()) == 2


def test_search_similar_is_read_only(coordinator, store, add_issue):
    add_issue()

    first = coordinator.search_similar(make_draft())
    second = coordinator.search_similar(make_draft())

    assert [m.id for m in first] == [m.id for m in second]
    assert len(store.all_issues()) == 1


def test_search_outside_radius_finds_nothing(coordinator, add_issue):
    add_issue(latitude=12.95, longitude=74.8)

    assert coordinator.search_similar(make_draft()) == []


def test_candidates_capped_to_nearest(coordinator, add_issue, monkeypatch):
    from app.core.settings import settings

    monkeypatch.setattr(settings, "MAX_RANKING_CANDIDATES", 3)
    for i in range(6):
        add_issue(issue_id=f"ring-{i}", latitude=12.9 + 0.0005 * i, longitude=74.8)

    seen = []
    original = coordinator.ranker.rank

    def spy(query, candidates):
        seen.extend(c.id for c in candidates)
        return original(query, candidates)

    monkeypatch.setattr(coordinator.ranker, "rank", spy)

    coordinator.search_similar(make_draft(latitude=12.9, longitude=74.8))

    assert seen == ["ring-0", "ring-1", "ring-2"]
