"""Tests for entity validation and the integrity rules."""

from datetime import date

import pytest

from tests.factories import make_city
from traveled_world.domain.entities import City, CityKind, Preferences, Trip
from traveled_world.domain.exceptions import ValidationError
from traveled_world.domain.integrity import (
    cascade_delete,
    coordinates_match,
    find_duplicate,
    missing_city_ids,
    prune_dangling_references,
)


def test_city_coerces_kind_and_coordinates():
    city = City(
        id="c1",
        name="Kyoto",
        country="Japan",
        coordinates=[35, 135.7681],  # type: ignore[arg-type]
        kind="lived",  # type: ignore[arg-type]
    )
    assert city.kind is CityKind.LIVED
    assert city.coordinates == (35.0, 135.7681)
    assert city.latitude == 35.0
    assert city.longitude == 135.7681


@pytest.mark.parametrize(
    "coordinates",
    [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.1), (0.0, -181.0)],
)
def test_city_rejects_out_of_range_coordinates(coordinates):
    with pytest.raises(ValidationError):
        make_city("bad", "Nowhere", coordinates)


def test_city_rejects_malformed_coordinates():
    with pytest.raises(ValidationError, match="pair"):
        make_city("bad", "Nowhere", (1.0,))  # type: ignore[arg-type]


def test_city_rejects_empty_name():
    with pytest.raises(ValidationError, match="name cannot be empty"):
        make_city("c1", "   ", (0.0, 0.0))


def test_city_rejects_unknown_kind():
    with pytest.raises(ValidationError, match="Unknown city kind"):
        City(id="c1", name="X", country="Y", coordinates=(0, 0), kind="moved")  # type: ignore[arg-type]


def test_city_create_assigns_identity():
    first = City.create(name="Oslo", country="Norway", coordinates=(59.91, 10.75))
    second = City.create(name="Oslo", country="Norway", coordinates=(59.91, 10.75))
    assert first.id != second.id
    assert first.last_visited == date.today()
    assert first.date_added.tzinfo is not None


def test_trip_copies_sequences():
    city_ids = ["a", "b"]
    trip = Trip(id="t1", name="Loop", city_ids=city_ids)
    city_ids.append("c")
    assert trip.city_ids == ["a", "b"]


def test_preferences_validate_animation_speed():
    with pytest.raises(ValidationError, match="Animation speed"):
        Preferences(animation_speed=3.0)


def test_preferences_reject_unknown_theme():
    with pytest.raises(ValidationError):
        Preferences(theme="neon")  # type: ignore[arg-type]


def test_coordinates_match_is_strict_at_tolerance():
    assert coordinates_match((10.0, 10.0), (10.009, 9.991))
    assert not coordinates_match((10.0, 10.0), (10.02, 10.0))
    assert not coordinates_match((10.0, 10.0), (10.0, 10.0125))


def test_find_duplicate_returns_first_match_in_stored_order():
    first = make_city("first", "First", (10.0, 10.0))
    closer = make_city("closer", "Closer", (10.005, 10.005))
    candidate = make_city("new", "New", (10.006, 10.006))

    assert find_duplicate([first, closer], candidate) is first
    assert find_duplicate([closer, first], candidate) is closer


def test_find_duplicate_without_collision(tokyo, paris):
    assert find_duplicate([tokyo], paris) is None
    assert find_duplicate([], paris) is None


def test_cascade_delete_removes_id_and_aligned_date():
    trip = Trip(
        id="t1",
        name="Trip",
        city_ids=["a", "b", "c"],
        visit_dates=[date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)],
    )

    [updated] = cascade_delete([trip], "b")

    assert updated.city_ids == ["a", "c"]
    assert updated.visit_dates == [date(2024, 1, 1), date(2024, 1, 3)]
    # input untouched
    assert trip.city_ids == ["a", "b", "c"]
    assert len(trip.visit_dates or []) == 3


def test_cascade_delete_keeps_misaligned_dates():
    trip = Trip(
        id="t1", name="Trip", city_ids=["a", "b"], visit_dates=[date(2024, 1, 1)]
    )

    [updated] = cascade_delete([trip], "a")

    assert updated.city_ids == ["b"]
    assert updated.visit_dates == [date(2024, 1, 1)]


def test_cascade_delete_keeps_emptied_trip():
    trips = [
        Trip(id="t1", name="Solo", city_ids=["a"]),
        Trip(id="t2", name="Other", city_ids=["b"]),
    ]

    updated = cascade_delete(trips, "a")

    assert [t.id for t in updated] == ["t1", "t2"]
    assert updated[0].city_ids == []
    assert updated[1].city_ids == ["b"]


def test_cascade_delete_removes_repeated_visits():
    trip = Trip(id="t1", name="Back and forth", city_ids=["a", "b", "a"])
    [updated] = cascade_delete([trip], "a")
    assert updated.city_ids == ["b"]


def test_prune_dangling_references(tokyo, paris):
    trip = Trip(
        id="t1",
        name="Trip",
        city_ids=["tokyo", "ghost", "paris"],
        visit_dates=[date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)],
    )

    [pruned] = prune_dangling_references([trip], [tokyo, paris])

    assert pruned.city_ids == ["tokyo", "paris"]
    assert pruned.visit_dates == [date(2024, 1, 1), date(2024, 1, 3)]


def test_missing_city_ids_preserves_order(tokyo):
    assert missing_city_ids(["x", "tokyo", "y"], [tokyo]) == ["x", "y"]
