"""Contract with the city search collaborator.

The search index runs elsewhere (a worker or separate task) and never touches
store state. It only hands back candidate records; the caller turns the one
the user picks into a `City` and passes it to `TravelStore.add_city`.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from ..domain.constants import DEFAULT_SEARCH_DEBOUNCE_MS
from ..domain.entities import City, CityKind


@dataclass(frozen=True)
class CityRecord:
    """One row of the world-cities dataset, as returned by a search."""

    city: str
    lat: float
    lng: float
    country: str
    city_ascii: str | None = None
    iso2: str | None = None
    iso3: str | None = None
    admin_name: str | None = None
    capital: str | None = None
    population: int | None = None
    id: int | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class CitySearch(Protocol):
    """Anything that can answer a debounced city-name query."""

    async def search(
        self, query: str, debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
    ) -> Sequence[CityRecord]: ...


def format_city_name(record: CityRecord) -> str:
    return f"{record.city}, {record.country}"


def city_from_record(
    record: CityRecord,
    kind: CityKind | str = CityKind.VISITED,
    last_visited: date | None = None,
) -> City:
    """Build a new City from a search hit, carrying its metadata along."""
    return City.create(
        name=record.city,
        country=record.country,
        coordinates=record.coordinates,
        kind=kind,
        last_visited=last_visited,
        admin_name=record.admin_name,
        capital=record.capital or None,
        population=record.population,
        iso2=record.iso2,
        iso3=record.iso3,
    )
