from datetime import UTC, date, datetime

from traveled_world.domain.entities import City, CityKind


def make_city(
    city_id: str,
    name: str,
    coordinates: tuple[float, float],
    country: str = "Somewhere",
    kind: CityKind = CityKind.VISITED,
) -> City:
    return City(
        id=city_id,
        name=name,
        country=country,
        coordinates=coordinates,
        kind=kind,
        last_visited=date(2024, 1, 1),
        date_added=datetime(2024, 1, 2, 12, 0, tzinfo=UTC),
    )
