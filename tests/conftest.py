from datetime import date

import pytest
from sqlmodel import SQLModel, create_engine
from sqlmodel.pool import StaticPool

from tests.factories import make_city
from traveled_world.application.store import TravelStore
from traveled_world.domain.entities import City, CityKind, Trip


@pytest.fixture
def tokyo() -> City:
    return make_city("tokyo", "Tokyo", (35.6762, 139.6503), country="Japan")


@pytest.fixture
def near_tokyo() -> City:
    return make_city("near-tokyo", "NearTokyo", (35.6800, 139.6550), country="Japan")


@pytest.fixture
def paris() -> City:
    return make_city("paris", "Paris", (48.8566, 2.3522), country="France")


@pytest.fixture
def lyon() -> City:
    return make_city(
        "lyon", "Lyon", (45.7640, 4.8357), country="France", kind=CityKind.LIVED
    )


@pytest.fixture
def store() -> TravelStore:
    return TravelStore()


@pytest.fixture
def populated_store(
    store: TravelStore, tokyo: City, paris: City, lyon: City
) -> TravelStore:
    """Store with three cities and one trip through all of them."""
    for city in (tokyo, paris, lyon):
        store.add_city(city)
    store.add_trip(
        Trip(
            id="grand-tour",
            name="Grand Tour",
            city_ids=["paris", "tokyo", "lyon"],
            visit_dates=[date(2024, 5, 1), date(2024, 5, 10), date(2024, 5, 20)],
        )
    )
    return store


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()
