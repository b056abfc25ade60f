from datetime import timedelta

from app.models.issue import CandidateIssue
from app.services.geo_candidates import nearest_first
from app.utils.geo import bounding_box, haversine_meters

from conftest import BASE_TIME


def test_bounding_box_is_inclusive():
    box = bounding_box(12.9, 74.8, 0.5)
    assert box.contains(box.min_lat, box.min_lng)
    assert box.contains(box.max_lat, box.max_lng)
    assert not box.contains(box.max_lat + 1e-6, 74.8)


def test_bounding_box_widens_longitude_away_from_equator():
    box = bounding_box(60.0, 10.0, 1.0)
    assert (box.max_lng - box.min_lng) > (box.max_lat - box.min_lat)


def test_haversine_known_distance():
    # 0.001 degree of latitude is about 111 m
    assert 105 < haversine_meters(12.9, 74.8, 12.901, 74.8) < 117


def test_find_near_returns_inside_only(finder, add_issue):
    inside = add_issue(latitude=12.901, longitude=74.801)
    add_issue(latitude=12.95, longitude=74.8)
    add_issue(latitude=12.9, longitude=74.9)

    found = finder.find_near(12.9, 74.8, 0.5)

    assert [c.id for c in found] == [inside.id]
    assert isinstance(found[0], CandidateIssue)
    assert found[0].normalized_location == "bailpar dandeli"


def test_find_near_wider_radius(finder, add_issue):
    add_issue(latitude=12.901, longitude=74.801)
    add_issue(latitude=12.93, longitude=74.82)

    assert len(finder.find_near(12.9, 74.8, 0.5)) == 1
    assert len(finder.find_near(12.9, 74.8, 5.0)) == 2


def test_find_near_without_coordinates(finder, add_issue):
    add_issue()
    assert finder.find_near(None, 74.8, 0.5) == []
    assert finder.find_near(12.9, None, 0.5) == []
    assert finder.find_near(12.9, 74.8, 0) == []


def test_find_near_empty_store(finder):
    assert finder.find_records_near(12.9, 74.8, 5.0) == []


def test_nearest_first_orders_by_distance_then_age(add_issue):
    far = CandidateIssue.from_record(add_issue(latitude=12.903, longitude=74.8))
    near_new = CandidateIssue.from_record(
        add_issue(latitude=12.9005, longitude=74.8, created_at=BASE_TIME + timedelta(days=2))
    )
    near_old = CandidateIssue.from_record(
        add_issue(latitude=12.9005, longitude=74.8, created_at=BASE_TIME)
    )

    ordered = nearest_first([far, near_new, near_old], 12.9, 74.8, limit=2)

    assert [c.id for c in ordered] == [near_old.id, near_new.id]
