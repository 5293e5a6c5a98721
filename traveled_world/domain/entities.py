"""Pure domain entities without infrastructure dependencies."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from uuid import uuid4

from .constants import (
    DEFAULT_SEARCH_DEBOUNCE_MS,
    DEFAULT_TRIP_COLOR,
    MAX_ANIMATION_SPEED,
    MAX_NAME_LENGTH,
    MIN_ANIMATION_SPEED,
)
from .exceptions import ValidationError


class CityKind(StrEnum):
    VISITED = "visited"
    LIVED = "lived"


class ViewMode(StrEnum):
    FLAT = "2d"
    GLOBE = "3d"


class Theme(StrEnum):
    DARK = "dark"
    LIGHT = "light"
    SATELLITE = "satellite"
    MINIMAL = "minimal"


class GlobeStyle(StrEnum):
    BLUE_MARBLE = "blue-marble"
    TOPOGRAPHIC = "topographic"
    VECTOR = "vector"
    SATELLITE = "satellite"
    NIGHT = "night"


def new_id() -> str:
    """Generate an opaque identifier for a new record."""
    return uuid4().hex


def validate_entity_name(name: str, entity_type: str = "entity") -> None:
    """Validate entity name according to domain business rules.

    Pure domain validation without logging or external dependencies.

    Args:
        name: The name to validate
        entity_type: Type of entity being validated (for error messages)

    Raises:
        ValidationError: If name is empty, too long, or contains problematic characters
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{entity_type.title()} name cannot be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{entity_type.title()} name cannot be longer than {MAX_NAME_LENGTH} "
            + "characters"
        )

    for char in name:
        if ord(char) < 32 or ord(char) == 127:
            raise ValidationError(
                f"{entity_type.title()} name cannot contain newlines, tabs, "
                + "or other control characters"
            )


def _as_pair(coordinates) -> tuple[float, float]:
    try:
        lat, lng = coordinates
        return float(lat), float(lng)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            "Coordinates must be a (latitude, longitude) pair"
        ) from e


def normalize_city_ids(city_ids) -> list[str]:
    """Copy a sequence of city ids, rejecting anything that is not a list of str.

    Raises:
        ValidationError: If `city_ids` is not a sequence of strings
    """
    if city_ids is None or isinstance(city_ids, str | bytes):
        raise ValidationError("Trip city ids must be a list of strings")
    try:
        ids = list(city_ids)
    except TypeError as e:
        raise ValidationError("Trip city ids must be a list of strings") from e
    if not all(isinstance(city_id, str) for city_id in ids):
        raise ValidationError("Trip city ids must be a list of strings")
    return ids


def validate_coordinates(coordinates: tuple[float, float]) -> None:
    """Validate that a (latitude, longitude) pair is in range.

    Raises:
        ValidationError: If either component is out of range
    """
    lat, lng = coordinates
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"Latitude {lat} is outside [-90, 90]")
    if not -180.0 <= lng <= 180.0:
        raise ValidationError(f"Longitude {lng} is outside [-180, 180]")


@dataclass
class City:
    """A place the user has visited or lived in."""

    id: str
    name: str
    country: str
    coordinates: tuple[float, float]
    kind: CityKind = CityKind.VISITED
    last_visited: date = field(default_factory=date.today)
    date_added: datetime = field(default_factory=lambda: datetime.now(UTC))
    admin_name: str | None = None
    capital: str | None = None
    population: int | None = None
    iso2: str | None = None
    iso3: str | None = None

    def __post_init__(self):
        """Normalize field types and validate after initialization."""
        self.coordinates = _as_pair(self.coordinates)
        try:
            self.kind = CityKind(self.kind)
        except ValueError as e:
            raise ValidationError(f"Unknown city kind: {self.kind!r}") from e
        self.validate()

    @classmethod
    def create(
        cls,
        name: str,
        country: str,
        coordinates: tuple[float, float],
        kind: CityKind | str = CityKind.VISITED,
        last_visited: date | None = None,
        **metadata,
    ) -> "City":
        """Build a new city with a fresh id and creation timestamp."""
        return cls(
            id=new_id(),
            name=name,
            country=country,
            coordinates=coordinates,
            kind=kind,
            last_visited=last_visited or date.today(),
            **metadata,
        )

    def validate(self) -> None:
        """Validate city business rules."""
        if not self.id:
            raise ValidationError("City id cannot be empty")
        validate_entity_name(self.name, "city")
        if not isinstance(self.country, str):
            raise ValidationError("City country must be a string")
        validate_coordinates(self.coordinates)
        if not isinstance(self.last_visited, date):
            raise ValidationError("City last visited must be a date")
        if not isinstance(self.date_added, datetime):
            raise ValidationError("City date added must be a datetime")

    @property
    def latitude(self) -> float:
        return self.coordinates[0]

    @property
    def longitude(self) -> float:
        return self.coordinates[1]


@dataclass
class Trip:
    """An ordered itinerary over stored cities, referenced by id."""

    id: str
    name: str
    city_ids: list[str] = field(default_factory=list)
    visit_dates: list[date] | None = None
    color: str = DEFAULT_TRIP_COLOR
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self):
        """Copy sequences so callers cannot alias trip internals."""
        self.city_ids = normalize_city_ids(self.city_ids)
        if self.visit_dates is not None:
            try:
                self.visit_dates = list(self.visit_dates)
            except TypeError as e:
                raise ValidationError("Trip visit dates must be a list") from e
        self.validate()

    @classmethod
    def create(
        cls,
        name: str,
        city_ids: list[str] | None = None,
        visit_dates: list[date] | None = None,
        color: str = DEFAULT_TRIP_COLOR,
    ) -> "Trip":
        """Build a new trip with a fresh id and creation timestamp."""
        return cls(
            id=new_id(),
            name=name,
            city_ids=city_ids or [],
            visit_dates=visit_dates,
            color=color,
        )

    def validate(self) -> None:
        """Validate trip business rules."""
        if not self.id:
            raise ValidationError("Trip id cannot be empty")
        validate_entity_name(self.name, "trip")
        if not isinstance(self.color, str) or not self.color:
            raise ValidationError("Trip color must be a non-empty string")
        if self.visit_dates is not None and not all(
            isinstance(d, date) for d in self.visit_dates
        ):
            raise ValidationError("Trip visit dates must be dates")
        if not isinstance(self.created_at, datetime):
            raise ValidationError("Trip created at must be a datetime")

    def has_aligned_dates(self) -> bool:
        """Check whether visit dates line up one-to-one with city ids."""
        return self.visit_dates is not None and len(self.visit_dates) == len(
            self.city_ids
        )


@dataclass
class Preferences:
    """View-state settings. Not part of undo/redo history."""

    default_view: ViewMode = ViewMode.GLOBE
    theme: Theme = Theme.DARK
    globe_style: GlobeStyle | None = None
    animation_speed: float = 1.0
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
    selected_trip_id: str | None = None

    def __post_init__(self):
        """Coerce enum fields and validate after initialization."""
        try:
            self.default_view = ViewMode(self.default_view)
            self.theme = Theme(self.theme)
            if self.globe_style is not None:
                self.globe_style = GlobeStyle(self.globe_style)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.validate()

    def validate(self) -> None:
        """Validate preference ranges."""
        if not isinstance(self.animation_speed, int | float):
            raise ValidationError("Animation speed must be a number")
        if not MIN_ANIMATION_SPEED <= self.animation_speed <= MAX_ANIMATION_SPEED:
            raise ValidationError(
                f"Animation speed must be between {MIN_ANIMATION_SPEED} and "
                + f"{MAX_ANIMATION_SPEED}"
            )

        if not isinstance(self.search_debounce_ms, int):
            raise ValidationError("Search debounce interval must be an integer")
        if self.search_debounce_ms < 0:
            raise ValidationError("Search debounce interval cannot be negative")


@dataclass
class TravelState:
    """Everything the store owns apart from history."""

    cities: list[City] = field(default_factory=list)
    trips: list[Trip] = field(default_factory=list)
    preferences: Preferences = field(default_factory=Preferences)
