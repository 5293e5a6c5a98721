"""Duplicate detection and referential integrity rules.

Pure functions over entity collections. Inputs are never mutated; cascading
changes produce new Trip instances.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .constants import COORDINATE_TOLERANCE
from .entities import City, Trip


def coordinates_match(
    a: tuple[float, float],
    b: tuple[float, float],
    tolerance: float = COORDINATE_TOLERANCE,
) -> bool:
    """Check whether two coordinate pairs denote the same place.

    Both latitude and longitude must differ by strictly less than `tolerance`.
    """
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def find_duplicate(cities: Iterable[City], candidate: City) -> City | None:
    """Return the first stored city that collides with `candidate`.

    Matches are reported in stored order, not by distance.
    """
    for city in cities:
        if coordinates_match(city.coordinates, candidate.coordinates):
            return city
    return None


def _without_city(trip: Trip, removed_ids: set[str]) -> Trip:
    if not removed_ids.intersection(trip.city_ids):
        return replace(trip)

    keep = [city_id not in removed_ids for city_id in trip.city_ids]
    city_ids = [city_id for city_id, kept in zip(trip.city_ids, keep) if kept]

    visit_dates = trip.visit_dates
    if trip.has_aligned_dates():
        # Only positional dates can be dropped alongside their city
        visit_dates = [d for d, kept in zip(trip.visit_dates or [], keep) if kept]

    return replace(trip, city_ids=city_ids, visit_dates=visit_dates)


def cascade_delete(trips: Sequence[Trip], removed_city_id: str) -> list[Trip]:
    """Remove a deleted city's id from every trip.

    Trips left without cities are kept; an empty itinerary is still a trip.

    Args:
        trips: Current trips
        removed_city_id: Id of the city being deleted

    Returns:
        New list of trips with no reference to `removed_city_id`
    """
    return [_without_city(trip, {removed_city_id}) for trip in trips]


def prune_dangling_references(
    trips: Sequence[Trip], cities: Iterable[City]
) -> list[Trip]:
    """Drop every trip reference to a city that is not in `cities`."""
    known_ids = {city.id for city in cities}
    pruned = []
    for trip in trips:
        dangling = set(trip.city_ids) - known_ids
        pruned.append(_without_city(trip, dangling))
    return pruned


def missing_city_ids(city_ids: Iterable[str], cities: Iterable[City]) -> list[str]:
    """List referenced ids that do not resolve to a stored city, in order."""
    known_ids = {city.id for city in cities}
    return [city_id for city_id in city_ids if city_id not in known_ids]
