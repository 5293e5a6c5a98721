from datetime import date
from typing import Any, Final

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import Field

from ..application.persistence_service import save_store
from ..application.selectors import activity_summary, itinerary
from ..application.store import TravelStore
from ..application.transfer import generate_filename
from ..constants import EXPORT_FILENAME_PREFIX
from ..domain.constants import DEFAULT_TRIP_COLOR, MAX_NAME_LENGTH
from ..domain.entities import City, CityKind, Trip
from ..infrastructure.database.persistence import StatePersistence
from ..infrastructure.serialization import (
    CitySchema,
    PreferencesPatch,
    PreferencesSchema,
    TripSchema,
    WireModel,
)

api_router: Final = APIRouter(
    prefix="/api/v1",
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        404: {"description": "Not Found - Resource does not exist"},
        409: {"description": "Conflict - City already exists at these coordinates"},
    },
)


def get_store(request: Request) -> TravelStore:
    return request.app.state.store


def get_persistence(request: Request) -> StatePersistence:
    return request.app.state.persistence


def _persist(store: TravelStore, persistence: StatePersistence) -> None:
    # Save failures are logged by save_store and never fail the request
    save_store(store, persistence)


# Request Models
_CITY_NULLABLE: Final = frozenset(
    {"admin_name", "capital", "population", "iso2", "iso3"}
)
_TRIP_NULLABLE: Final = frozenset({"visit_dates"})


def _drop_nulls(changes: dict[str, Any], nullable: frozenset[str]) -> dict[str, Any]:
    return {
        name: value
        for name, value in changes.items()
        if value is not None or name in nullable
    }


class CityCreate(WireModel):
    """Request model for adding a city."""

    id: str | None = Field(
        default=None, min_length=1, description="Client-generated id (optional)"
    )
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    country: str
    coordinates: tuple[float, float] = Field(
        description="(latitude, longitude)", examples=[[35.6762, 139.6503]]
    )
    kind: CityKind = Field(default=CityKind.VISITED, alias="type")
    last_visited: date | None = None
    admin_name: str | None = None
    capital: str | None = None
    population: int | None = None
    iso2: str | None = None
    iso3: str | None = None

    def to_domain(self) -> City:
        fields = self.model_dump(exclude={"id"})
        if self.id is None:
            return City.create(**fields)
        if fields["last_visited"] is None:
            fields["last_visited"] = date.today()
        return City(id=self.id, **fields)


class CityPatch(WireModel):
    """Partial city update; only fields present in the body are applied.

    Only the optional metadata fields can be cleared with null; a null for any
    other field is ignored.
    """

    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    country: str | None = None
    coordinates: tuple[float, float] | None = None
    kind: CityKind | None = Field(default=None, alias="type")
    last_visited: date | None = None
    admin_name: str | None = None
    capital: str | None = None
    population: int | None = None
    iso2: str | None = None
    iso3: str | None = None

    def changes(self) -> dict[str, Any]:
        return _drop_nulls(self.model_dump(exclude_unset=True), _CITY_NULLABLE)


class TripCreate(WireModel):
    """Request model for creating a trip."""

    id: str | None = Field(default=None, min_length=1)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    city_ids: list[str] = Field(default_factory=list)
    visit_dates: list[date] | None = Field(default=None, alias="dates")
    color: str = DEFAULT_TRIP_COLOR

    def to_domain(self) -> Trip:
        if self.id is None:
            return Trip.create(
                name=self.name,
                city_ids=self.city_ids,
                visit_dates=self.visit_dates,
                color=self.color,
            )
        return Trip(**self.model_dump())


class TripPatch(WireModel):
    """Partial trip update. Only `dates` can be cleared with null."""

    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    city_ids: list[str] | None = None
    visit_dates: list[date] | None = Field(default=None, alias="dates")
    color: str | None = None

    def changes(self) -> dict[str, Any]:
        return _drop_nulls(self.model_dump(exclude_unset=True), _TRIP_NULLABLE)


# Response Models
class HistoryResponse(WireModel):
    can_undo: bool
    can_redo: bool
    cursor: int
    length: int


class HistoryActionResponse(WireModel):
    changed: bool = Field(description="Whether the state moved")
    history: HistoryResponse
    cities: list[CitySchema]
    trips: list[TripSchema]


class ItineraryStopResponse(WireModel):
    city: CitySchema
    visit_date: date | None


class CountryCountResponse(WireModel):
    country: str
    count: int


class SummaryResponse(WireModel):
    total_cities: int
    visited_cities: int
    lived_cities: int
    country_count: int
    trip_count: int
    top_countries: list[CountryCountResponse]


def _history(store: TravelStore) -> HistoryResponse:
    return HistoryResponse(
        can_undo=store.can_undo(),
        can_redo=store.can_redo(),
        cursor=store.history.cursor,
        length=len(store.history),
    )


def _history_action(store: TravelStore, changed: bool) -> HistoryActionResponse:
    return HistoryActionResponse(
        changed=changed,
        history=_history(store),
        cities=[CitySchema.from_domain(city) for city in store.cities],
        trips=[TripSchema.from_domain(trip) for trip in store.trips],
    )


# Cities
@api_router.get("/cities", response_model=list[CitySchema], tags=["cities"])
async def api_list_cities(
    filtered: bool = Query(
        False, description="Restrict to the selected trip's cities, if any"
    ),
    store: TravelStore = Depends(get_store),
) -> list[CitySchema]:
    """List cities in insertion order."""
    cities = store.filtered_cities() if filtered else store.cities
    return [CitySchema.from_domain(city) for city in cities]


@api_router.get("/cities/{city_id}", response_model=CitySchema, tags=["cities"])
async def api_get_city(
    city_id: str, store: TravelStore = Depends(get_store)
) -> CitySchema:
    city = store.get_city(city_id)
    if city is None:
        raise HTTPException(status_code=404, detail=f"City '{city_id}' not found")
    return CitySchema.from_domain(city)


@api_router.post(
    "/cities",
    response_model=CitySchema,
    status_code=status.HTTP_201_CREATED,
    tags=["cities"],
    summary="Add a city",
    description="""
    Add a visited or lived-in city.

    Cities within 0.01 degrees of a stored city in both latitude and longitude
    are rejected with 409; the response's `existingId` names the stored city.
    """,
)
async def api_create_city(
    city_create: CityCreate,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> CitySchema:
    city = store.add_city(city_create.to_domain())
    _persist(store, persistence)
    return CitySchema.from_domain(city)


@api_router.patch("/cities/{city_id}", response_model=CitySchema, tags=["cities"])
async def api_update_city(
    city_id: str,
    city_patch: CityPatch,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> CitySchema:
    if store.get_city(city_id) is None:
        raise HTTPException(status_code=404, detail=f"City '{city_id}' not found")
    city = store.update_city(city_id, **city_patch.changes())
    _persist(store, persistence)
    if city is None:
        raise HTTPException(status_code=404, detail=f"City '{city_id}' not found")
    return CitySchema.from_domain(city)


@api_router.delete(
    "/cities/{city_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["cities"]
)
async def api_delete_city(
    city_id: str,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> None:
    """Delete a city and remove it from every trip."""
    if store.get_city(city_id) is None:
        raise HTTPException(status_code=404, detail=f"City '{city_id}' not found")
    store.delete_city(city_id)
    _persist(store, persistence)


# Trips
@api_router.get("/trips", response_model=list[TripSchema], tags=["trips"])
async def api_list_trips(store: TravelStore = Depends(get_store)) -> list[TripSchema]:
    return [TripSchema.from_domain(trip) for trip in store.trips]


@api_router.post(
    "/trips",
    response_model=TripSchema,
    status_code=status.HTTP_201_CREATED,
    tags=["trips"],
)
async def api_create_trip(
    trip_create: TripCreate,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> TripSchema:
    trip = store.add_trip(trip_create.to_domain())
    _persist(store, persistence)
    return TripSchema.from_domain(trip)


@api_router.patch("/trips/{trip_id}", response_model=TripSchema, tags=["trips"])
async def api_update_trip(
    trip_id: str,
    trip_patch: TripPatch,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> TripSchema:
    if store.get_trip(trip_id) is None:
        raise HTTPException(status_code=404, detail=f"Trip '{trip_id}' not found")
    trip = store.update_trip(trip_id, **trip_patch.changes())
    _persist(store, persistence)
    if trip is None:
        raise HTTPException(status_code=404, detail=f"Trip '{trip_id}' not found")
    return TripSchema.from_domain(trip)


@api_router.delete(
    "/trips/{trip_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["trips"]
)
async def api_delete_trip(
    trip_id: str,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> None:
    if store.get_trip(trip_id) is None:
        raise HTTPException(status_code=404, detail=f"Trip '{trip_id}' not found")
    store.delete_trip(trip_id)
    _persist(store, persistence)


@api_router.get(
    "/trips/{trip_id}/itinerary",
    response_model=list[ItineraryStopResponse],
    tags=["trips"],
)
async def api_trip_itinerary(
    trip_id: str, store: TravelStore = Depends(get_store)
) -> list[ItineraryStopResponse]:
    """Stops of a trip in travel order."""
    if store.get_trip(trip_id) is None:
        raise HTTPException(status_code=404, detail=f"Trip '{trip_id}' not found")
    return [
        ItineraryStopResponse(
            city=CitySchema.from_domain(stop.city), visit_date=stop.visit_date
        )
        for stop in itinerary(store.state, trip_id)
    ]


# Preferences
@api_router.get("/preferences", response_model=PreferencesSchema, tags=["preferences"])
async def api_get_preferences(
    store: TravelStore = Depends(get_store),
) -> PreferencesSchema:
    return PreferencesSchema.from_domain(store.preferences)


@api_router.patch(
    "/preferences", response_model=PreferencesSchema, tags=["preferences"]
)
async def api_update_preferences(
    patch: PreferencesPatch,
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> PreferencesSchema:
    """Update view preferences. These changes are not part of undo/redo."""
    preferences = store.update_preferences(**patch.changes())
    _persist(store, persistence)
    return PreferencesSchema.from_domain(preferences)


# History
@api_router.get("/history", response_model=HistoryResponse, tags=["history"])
async def api_history(store: TravelStore = Depends(get_store)) -> HistoryResponse:
    return _history(store)


@api_router.post(
    "/history/undo", response_model=HistoryActionResponse, tags=["history"]
)
async def api_undo(
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> HistoryActionResponse:
    changed = store.undo()
    if changed:
        _persist(store, persistence)
    return _history_action(store, changed)


@api_router.post(
    "/history/redo", response_model=HistoryActionResponse, tags=["history"]
)
async def api_redo(
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> HistoryActionResponse:
    changed = store.redo()
    if changed:
        _persist(store, persistence)
    return _history_action(store, changed)


# Import / export
@api_router.get("/export", tags=["transfer"])
async def api_export(store: TravelStore = Depends(get_store)) -> JSONResponse:
    """Download the versioned export document."""
    filename = generate_filename(EXPORT_FILENAME_PREFIX, "json")
    return JSONResponse(
        content=store.export_snapshot(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@api_router.post("/import", response_model=HistoryResponse, tags=["transfer"])
async def api_import(
    payload: Any = Body(..., description="A previously exported document"),
    store: TravelStore = Depends(get_store),
    persistence: StatePersistence = Depends(get_persistence),
) -> HistoryResponse:
    """Replace all cities, trips and preferences. Undo history is cleared."""
    store.import_snapshot(payload)
    _persist(store, persistence)
    return _history(store)


@api_router.get("/summary", response_model=SummaryResponse, tags=["summary"])
async def api_summary(store: TravelStore = Depends(get_store)) -> SummaryResponse:
    summary = activity_summary(store.state)
    return SummaryResponse(
        total_cities=summary.total_cities,
        visited_cities=summary.visited_cities,
        lived_cities=summary.lived_cities,
        country_count=summary.country_count,
        trip_count=summary.trip_count,
        top_countries=[
            CountryCountResponse(country=c.country, count=c.count)
            for c in summary.top_countries
        ],
    )
