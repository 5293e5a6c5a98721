"""Pydantic schemas for the versioned JSON payload.

Wire names are camelCase (`lastVisited`, `cityIds`, ...); Python attribute
names match the domain dataclasses so conversion is a plain keyword splat.
"""

from dataclasses import asdict
from datetime import UTC, date, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..domain.constants import (
    DEFAULT_SEARCH_DEBOUNCE_MS,
    DEFAULT_TRIP_COLOR,
    EXPORT_VERSION,
    MAX_ANIMATION_SPEED,
    MIN_ANIMATION_SPEED,
)
from ..domain.entities import (
    City,
    CityKind,
    GlobeStyle,
    Preferences,
    Theme,
    Trip,
    ViewMode,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class CitySchema(WireModel):
    id: str = Field(min_length=1)
    name: str
    country: str
    coordinates: tuple[float, float] = Field(description="(latitude, longitude)")
    kind: CityKind = Field(default=CityKind.VISITED, alias="type")
    last_visited: date = Field(default_factory=date.today)
    date_added: datetime = Field(default_factory=_utcnow)
    admin_name: str | None = None
    capital: str | None = None
    population: int | None = None
    iso2: str | None = None
    iso3: str | None = None

    @classmethod
    def from_domain(cls, city: City) -> "CitySchema":
        return cls(**asdict(city))

    def to_domain(self) -> City:
        return City(**self.model_dump())


class TripSchema(WireModel):
    id: str = Field(min_length=1)
    name: str
    city_ids: list[str] = Field(default_factory=list)
    visit_dates: list[date] | None = Field(default=None, alias="dates")
    color: str = DEFAULT_TRIP_COLOR
    created_at: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("createdAt", "dateCreated", "created_at"),
    )

    @classmethod
    def from_domain(cls, trip: Trip) -> "TripSchema":
        return cls(**asdict(trip))

    def to_domain(self) -> Trip:
        return Trip(**self.model_dump())


class PreferencesSchema(WireModel):
    default_view: ViewMode = ViewMode.GLOBE
    theme: Theme = Theme.DARK
    globe_style: GlobeStyle | None = None
    animation_speed: float = Field(
        default=1.0, ge=MIN_ANIMATION_SPEED, le=MAX_ANIMATION_SPEED
    )
    search_debounce_ms: int = Field(default=DEFAULT_SEARCH_DEBOUNCE_MS, ge=0)
    selected_trip_id: str | None = None

    @classmethod
    def from_domain(cls, preferences: Preferences) -> "PreferencesSchema":
        return cls(**asdict(preferences))

    def to_domain(self) -> Preferences:
        return Preferences(**self.model_dump())


class PreferencesPatch(WireModel):
    """Partial preferences; only fields actually present are applied."""

    default_view: ViewMode | None = None
    theme: Theme | None = None
    globe_style: GlobeStyle | None = None
    animation_speed: float | None = Field(
        default=None, ge=MIN_ANIMATION_SPEED, le=MAX_ANIMATION_SPEED
    )
    search_debounce_ms: int | None = Field(default=None, ge=0)
    selected_trip_id: str | None = None

    def changes(self) -> dict:
        """Fields the payload set explicitly, keyed by domain attribute name."""
        changes = self.model_dump(exclude_unset=True)
        # Only these two may legitimately be cleared with null
        nullable = {"globe_style", "selected_trip_id"}
        return {
            name: value
            for name, value in changes.items()
            if value is not None or name in nullable
        }


class ExportDocument(WireModel):
    cities: list[CitySchema]
    trips: list[TripSchema]
    preferences: PreferencesSchema
    exported_at: datetime = Field(default_factory=_utcnow)
    version: str = EXPORT_VERSION
