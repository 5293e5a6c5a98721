"""Glue between a `TravelStore` and a persistence collaborator."""

from typing import Final

from ..config import Settings
from ..domain.entities import Preferences
from ..domain.exceptions import MalformedImportError
from ..infrastructure.database.persistence import StatePersistence
from ..logging_config import get_logger
from .store import TravelStore

logger: Final = get_logger(__name__)


def default_preferences(settings: Settings) -> Preferences:
    return Preferences(
        default_view=settings.default_view,
        theme=settings.default_theme,
        search_debounce_ms=settings.search_debounce_ms,
    )


def load_store(persistence: StatePersistence, settings: Settings) -> TravelStore:
    """Create a store from persisted state, or an empty one.

    Loading goes through import, so history starts fresh. A stored payload
    that cannot be read is logged and ignored.
    """
    store = TravelStore(
        preferences=default_preferences(settings),
        history_limit=settings.history_limit,
    )

    payload = persistence.load()
    if payload is None:
        logger.info("No persisted state found, starting empty")
        return store

    try:
        store.import_snapshot(payload)
    except MalformedImportError as e:
        logger.error("Ignoring unreadable persisted state", error=str(e))
        return store

    logger.info(
        "Restored persisted state",
        city_count=len(store.cities),
        trip_count=len(store.trips),
    )
    return store


def save_store(store: TravelStore, persistence: StatePersistence) -> bool:
    """Persist the store's current state. Failure is logged, not raised."""
    saved = persistence.save(store.export_snapshot())
    if not saved:
        logger.warning("State not persisted; continuing in memory")
    return saved
