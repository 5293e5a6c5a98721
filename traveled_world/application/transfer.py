"""Import/export of the versioned store payload.

Export produces `{cities, trips, preferences, exportedAt, version}`. Import is
lenient about missing collections but strict about the records it does find:
a collection that is absent or not a list becomes empty, while a record that
cannot be read raises `MalformedImportError`.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from ..domain.constants import EXPORT_VERSION
from ..domain.entities import City, Preferences, TravelState
from ..domain.exceptions import MalformedImportError, ValidationError
from ..domain.integrity import find_duplicate, prune_dangling_references
from ..infrastructure.serialization import (
    CitySchema,
    ExportDocument,
    PreferencesPatch,
    PreferencesSchema,
    TripSchema,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, str], None]


def export_snapshot(
    state: TravelState, exported_at: datetime | None = None
) -> dict[str, Any]:
    """Build the versioned export document for `state`."""
    document = ExportDocument(
        cities=[CitySchema.from_domain(city) for city in state.cities],
        trips=[TripSchema.from_domain(trip) for trip in state.trips],
        preferences=PreferencesSchema.from_domain(state.preferences),
        exported_at=exported_at or datetime.now(UTC),
    )
    return document.to_wire()


def _records(payload: Mapping[str, Any], key: str) -> list[Any]:
    records = payload.get(key)
    if isinstance(records, list):
        return records
    if records is not None:
        logger.warning(
            "Import field is not a list, substituting empty collection",
            field=key,
            received_type=type(records).__name__,
        )
    return []


def _parse_records(
    records: list[Any], schema: type[CitySchema] | type[TripSchema], key: str
) -> list:
    parsed = []
    for index, record in enumerate(records):
        try:
            parsed.append(schema.model_validate(record).to_domain())
        except (SchemaValidationError, ValidationError) as e:
            raise MalformedImportError(
                f"Invalid record in '{key}' at index {index}: {e}"
            ) from e
    return parsed


def _check_unique_ids(records: list, key: str) -> None:
    seen: set[str] = set()
    for index, record in enumerate(records):
        if record.id in seen:
            raise MalformedImportError(
                f"Repeated id '{record.id}' in '{key}' at index {index}"
            )
        seen.add(record.id)


def _warn_coordinate_collisions(cities: list[City]) -> None:
    # Colliding imported cities are kept as they are
    for index, city in enumerate(cities):
        existing = find_duplicate(cities[:index], city)
        if existing is not None:
            logger.warning(
                "Imported city collides with an earlier one",
                city_id=city.id,
                city_name=city.name,
                existing_id=existing.id,
                index=index,
            )


def _merge_preferences(raw: Any, current: Preferences) -> Preferences:
    if not isinstance(raw, Mapping):
        return replace(current)
    try:
        return replace(current, **PreferencesPatch.model_validate(raw).changes())
    except (SchemaValidationError, ValidationError) as e:
        raise MalformedImportError(f"Invalid preferences: {e}") from e


def import_snapshot(
    payload: Any, current_preferences: Preferences | None = None
) -> TravelState:
    """Turn an imported payload into a complete store state.

    Args:
        payload: Decoded JSON document
        current_preferences: Preferences the imported ones are merged over

    Returns:
        New state with dangling trip references removed

    Raises:
        MalformedImportError: If the payload is not an object, holds an
            unreadable record or repeats a city or trip id
    """
    if not isinstance(payload, Mapping):
        raise MalformedImportError("Import payload must be a JSON object")

    version = payload.get("version")
    if version is not None and str(version) != EXPORT_VERSION:
        logger.warning("Importing payload with unexpected version", version=version)

    cities = _parse_records(_records(payload, "cities"), CitySchema, "cities")
    trips = _parse_records(_records(payload, "trips"), TripSchema, "trips")
    _check_unique_ids(cities, "cities")
    _check_unique_ids(trips, "trips")
    _warn_coordinate_collisions(cities)
    preferences = _merge_preferences(
        payload.get("preferences"), current_preferences or Preferences()
    )

    return TravelState(
        cities=cities,
        trips=prune_dangling_references(trips, cities),
        preferences=preferences,
    )


def export_to_json(
    state: TravelState, progress: ProgressCallback | None = None
) -> str:
    """Serialize `state` to an indented JSON export document."""
    if progress:
        progress(0, 2, "Preparing data")
    document = export_snapshot(state)
    if progress:
        progress(1, 2, "Serializing data")
    text = json.dumps(document, indent=2, ensure_ascii=False)
    if progress:
        progress(2, 2, "Done")
    return text


def import_from_json(
    text: str,
    current_preferences: Preferences | None = None,
    progress: ProgressCallback | None = None,
) -> TravelState:
    """Parse a JSON export document into store state.

    Raises:
        MalformedImportError: If the text is not valid JSON or not a valid payload
    """
    if progress:
        progress(0, 2, "Parsing JSON")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedImportError(f"Invalid JSON format: {e.msg}") from e
    if progress:
        progress(1, 2, "Processing data")
    state = import_snapshot(payload, current_preferences)
    if progress:
        progress(2, 2, "Done")
    return state


def generate_filename(
    prefix: str, extension: str, now: datetime | None = None
) -> str:
    """Build a timestamped file name such as `prefix-2024-10-15T08-30-00.json`."""
    timestamp = (now or datetime.now(UTC)).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{prefix}-{timestamp}.{extension}"
