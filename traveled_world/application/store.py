"""The travel record store: commands, undo/redo and read access.

A `TravelStore` is an ordinary object; callers create one and pass it
around. It is single-writer by contract: every command runs synchronously on
the caller's thread and hosts with several threads must serialize calls
themselves. Commands that change cities or trips commit a history snapshot.
Preference changes do not.
"""

from collections.abc import Iterable
from copy import deepcopy
from dataclasses import fields, replace
from typing import Any, Final

from ..domain.constants import MAX_HISTORY_LENGTH
from ..domain.entities import (
    City,
    Preferences,
    TravelState,
    Trip,
    normalize_city_ids,
)
from ..domain.exceptions import ValidationError
from ..domain.integrity import cascade_delete, find_duplicate, missing_city_ids
from ..domain.results import AddCityResult, CityAdded, DuplicateConflict
from ..logging_config import get_logger
from ..logging_utils import log_store_operation
from . import selectors, transfer
from .history import HistoryEngine

logger: Final = get_logger(__name__)

_CITY_IMMUTABLE_FIELDS: Final = frozenset({"id", "date_added"})
_TRIP_IMMUTABLE_FIELDS: Final = frozenset({"id", "created_at"})


def _check_changes(
    entity_type: type, changes: dict[str, Any], immutable: Iterable[str] = ()
) -> None:
    """Reject partial updates that name unknown or immutable fields.

    Raises:
        ValidationError: If a field cannot be updated
    """
    known = {f.name for f in fields(entity_type)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValidationError(
            f"Unknown {entity_type.__name__.lower()} fields: {', '.join(unknown)}"
        )

    frozen = sorted(set(changes).intersection(immutable))
    if frozen:
        raise ValidationError(
            f"{entity_type.__name__} fields cannot be changed: {', '.join(frozen)}"
        )


class TravelStore:
    """Owns cities, trips, preferences and the undo/redo history."""

    def __init__(
        self,
        preferences: Preferences | None = None,
        history_limit: int = MAX_HISTORY_LENGTH,
    ):
        self._state = TravelState(preferences=preferences or Preferences())
        self._history = HistoryEngine(max_length=history_limit)

    # Read API

    @property
    def state(self) -> TravelState:
        """Live state for selectors. Change it through commands only."""
        return self._state

    @property
    def cities(self) -> list[City]:
        """Copies of the stored cities; editing them does not touch the store."""
        return deepcopy(self._state.cities)

    @property
    def trips(self) -> list[Trip]:
        return deepcopy(self._state.trips)

    @property
    def preferences(self) -> Preferences:
        return replace(self._state.preferences)

    @property
    def history(self) -> HistoryEngine:
        return self._history

    def _find_city(self, city_id: str) -> City | None:
        return next((c for c in self._state.cities if c.id == city_id), None)

    def _find_trip(self, trip_id: str) -> Trip | None:
        return next((t for t in self._state.trips if t.id == trip_id), None)

    def get_city(self, city_id: str) -> City | None:
        return deepcopy(self._find_city(city_id))

    def get_trip(self, trip_id: str) -> Trip | None:
        return deepcopy(self._find_trip(trip_id))

    def filtered_cities(self) -> list[City]:
        return deepcopy(selectors.filtered_cities(self._state))

    # City commands

    def try_add_city(self, city: City) -> AddCityResult:
        """Add a city unless it collides with a stored one.

        Returns:
            `CityAdded` on success, `DuplicateConflict` naming the stored city
            otherwise. A conflict leaves state and history untouched.

        Raises:
            ValidationError: If the city id is already taken
        """
        if self._find_city(city.id) is not None:
            raise ValidationError(f"City id '{city.id}' already exists")

        existing = find_duplicate(self._state.cities, city)
        if existing is not None:
            logger.warning(
                "City creation rejected - duplicate coordinates",
                city_name=city.name,
                existing_id=existing.id,
                existing_name=existing.name,
            )
            log_store_operation(
                "add", "city", success=False, city_id=city.id, existing_id=existing.id
            )
            return DuplicateConflict(existing_id=existing.id, candidate=city)

        # The store keeps its own copy; later edits to `city` stay outside it
        self._state.cities = [*self._state.cities, deepcopy(city)]
        self._commit()

        log_store_operation("add", "city", city_id=city.id, city_name=city.name)
        logger.info("City added", city_id=city.id, city_name=city.name)
        return CityAdded(city=deepcopy(city))

    def add_city(self, city: City) -> City:
        """Add a city, raising instead of returning a conflict.

        Raises:
            DuplicateCityError: If a stored city is within the coordinate
                tolerance; carries that city's id
            ValidationError: If the city id is already taken
        """
        match self.try_add_city(city):
            case CityAdded(city=added):
                return added
            case DuplicateConflict() as conflict:
                raise conflict.to_error()

    def update_city(self, city_id: str, **changes: Any) -> City | None:
        """Shallow-merge `changes` into the city with `city_id`.

        An unknown id changes nothing but still records a history entry.
        Coordinates are not re-checked for duplicates here.

        Returns:
            The updated city, or None if no city has that id
        """
        _check_changes(City, changes, _CITY_IMMUTABLE_FIELDS)

        updated = None
        cities = []
        for city in self._state.cities:
            if city.id == city_id:
                updated = replace(city, **changes)
                cities.append(updated)
            else:
                cities.append(city)

        self._state.cities = cities
        self._commit()

        if updated is None:
            logger.debug("City update ignored - unknown id", city_id=city_id)
        else:
            logger.debug("City updated", city_id=city_id, fields=sorted(changes))
        return deepcopy(updated)

    def delete_city(self, city_id: str) -> bool:
        """Delete a city and strip it from every trip in one history entry.

        Returns:
            Whether a city was removed
        """
        remaining = [city for city in self._state.cities if city.id != city_id]
        removed = len(remaining) != len(self._state.cities)

        self._state.cities = remaining
        self._state.trips = cascade_delete(self._state.trips, city_id)
        self._commit()

        if removed:
            log_store_operation("delete", "city", city_id=city_id)
        else:
            logger.debug("City delete ignored - unknown id", city_id=city_id)
        return removed

    # Trip commands

    def _check_trip_cities(self, city_ids: Iterable[str]) -> None:
        missing = missing_city_ids(city_ids, self._state.cities)
        if missing:
            raise ValidationError(
                f"Trip references unknown cities: {', '.join(missing)}"
            )

    def add_trip(self, trip: Trip) -> Trip:
        """Append a trip.

        Raises:
            ValidationError: If the id is taken or a city id does not resolve
        """
        if self._find_trip(trip.id) is not None:
            raise ValidationError(f"Trip id '{trip.id}' already exists")
        self._check_trip_cities(trip.city_ids)

        self._state.trips = [*self._state.trips, deepcopy(trip)]
        self._commit()

        log_store_operation("add", "trip", trip_id=trip.id, trip_name=trip.name)
        return deepcopy(trip)

    def update_trip(self, trip_id: str, **changes: Any) -> Trip | None:
        """Shallow-merge `changes` into the trip with `trip_id`.

        Unknown ids behave as in `update_city`.
        """
        _check_changes(Trip, changes, _TRIP_IMMUTABLE_FIELDS)
        if "city_ids" in changes:
            self._check_trip_cities(normalize_city_ids(changes["city_ids"]))

        updated = None
        trips = []
        for trip in self._state.trips:
            if trip.id == trip_id:
                updated = replace(trip, **changes)
                trips.append(updated)
            else:
                trips.append(trip)

        self._state.trips = trips
        self._commit()

        logger.debug("Trip update", trip_id=trip_id, found=updated is not None)
        return deepcopy(updated)

    def delete_trip(self, trip_id: str) -> bool:
        """Delete a trip. Cities are never affected."""
        remaining = [trip for trip in self._state.trips if trip.id != trip_id]
        removed = len(remaining) != len(self._state.trips)

        self._state.trips = remaining
        self._commit()

        if removed:
            log_store_operation("delete", "trip", trip_id=trip_id)
        return removed

    # Preferences

    def update_preferences(self, **changes: Any) -> Preferences:
        """Shallow-merge preference changes. Not recorded in history."""
        _check_changes(Preferences, changes)
        self._state.preferences = replace(self._state.preferences, **changes)
        logger.debug("Preferences updated", fields=sorted(changes))
        return self._state.preferences

    # History

    def _commit(self) -> None:
        self._history.commit(self._state.cities, self._state.trips)

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False when there is none."""
        restored = self._history.undo()
        if restored is None:
            return False
        self._state.cities, self._state.trips = restored
        logger.debug("Undo", cursor=self._history.cursor)
        return True

    def redo(self) -> bool:
        """Re-apply the next snapshot. Returns False when there is none."""
        restored = self._history.redo()
        if restored is None:
            return False
        self._state.cities, self._state.trips = restored
        logger.debug("Redo", cursor=self._history.cursor)
        return True

    # Import / export

    def export_snapshot(self) -> dict[str, Any]:
        """Versioned document of the current state."""
        return transfer.export_snapshot(self._state)

    def import_snapshot(self, payload: Any) -> TravelState:
        """Replace all state with an imported payload and restart history.

        Raises:
            MalformedImportError: If the payload cannot be read; the store is
                left unchanged
        """
        state = transfer.import_snapshot(payload, self._state.preferences)
        self._state = state
        self._history.reset(state.cities, state.trips)

        log_store_operation(
            "import",
            "store",
            city_count=len(state.cities),
            trip_count=len(state.trips),
        )
        return state
