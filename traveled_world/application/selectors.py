"""Read-only projections of store state.

Selectors are recomputed on every read and never touch history.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date

from ..domain.entities import City, CityKind, TravelState, Trip


@dataclass(frozen=True)
class ItineraryStop:
    city: City
    visit_date: date | None


@dataclass(frozen=True)
class CountryCount:
    country: str
    count: int


@dataclass(frozen=True)
class ActivitySummary:
    total_cities: int
    visited_cities: int
    lived_cities: int
    country_count: int
    trip_count: int
    top_countries: list[CountryCount]


def find_trip(state: TravelState, trip_id: str | None) -> Trip | None:
    if trip_id is None:
        return None
    return next((trip for trip in state.trips if trip.id == trip_id), None)


def filtered_cities(state: TravelState) -> list[City]:
    """Cities visible under the currently selected trip.

    With no selection, or a selection that no longer resolves to a trip, all
    cities are returned. Otherwise only the trip's cities are returned, in
    the city collection's order rather than itinerary order.
    """
    trip = find_trip(state, state.preferences.selected_trip_id)
    if trip is None:
        return list(state.cities)

    member_ids = set(trip.city_ids)
    return [city for city in state.cities if city.id in member_ids]


def itinerary(state: TravelState, trip_id: str) -> list[ItineraryStop]:
    """The trip's stops in travel order, paired with their visit dates.

    Dates are only attached when the trip's dates line up with its cities.
    """
    trip = find_trip(state, trip_id)
    if trip is None:
        return []

    cities_by_id = {city.id: city for city in state.cities}
    dates = trip.visit_dates if trip.has_aligned_dates() else None

    stops = []
    for position, city_id in enumerate(trip.city_ids):
        city = cities_by_id.get(city_id)
        if city is None:
            continue
        stops.append(
            ItineraryStop(city=city, visit_date=dates[position] if dates else None)
        )
    return stops


def activity_summary(state: TravelState, top: int = 5) -> ActivitySummary:
    """Counts shown in the activity overview."""
    # Counter keeps first-seen order for equal counts
    per_country = Counter(city.country for city in state.cities)
    kinds = Counter(city.kind for city in state.cities)

    return ActivitySummary(
        total_cities=len(state.cities),
        visited_cities=kinds[CityKind.VISITED],
        lived_cities=kinds[CityKind.LIVED],
        country_count=len(per_country),
        trip_count=len(state.trips),
        top_countries=[
            CountryCount(country=country, count=count)
            for country, count in per_country.most_common(top)
        ],
    )
