"""Persistence collaborator: durable storage for the store's payload.

Failures are reported, never raised. In-memory operation carries on when the
database is unavailable.
"""

import json
from datetime import UTC, datetime
from typing import Any, Final, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import Engine
from sqlmodel import Session

from ...constants import PERSISTENCE_KEY
from ...domain.constants import EXPORT_VERSION
from ...logging_config import get_logger
from .database import init_db
from .models import StoredStateRecord

logger: Final = get_logger(__name__)


class StatePersistence(Protocol):
    def load(self) -> dict[str, Any] | None: ...

    def save(self, payload: dict[str, Any]) -> bool: ...


class SqlStatePersistence:
    """Keeps the payload in the `stored_state` table under a single key."""

    def __init__(self, engine: Engine, key: str = PERSISTENCE_KEY):
        self.engine = engine
        self.key = key
        init_db(engine)

    def load(self) -> dict[str, Any] | None:
        """Return the stored payload, or None if nothing usable is stored."""
        try:
            with Session(self.engine) as session:
                record = session.get(StoredStateRecord, self.key)
                if record is None:
                    return None
                payload = record.payload
        except SQLAlchemyError as e:
            logger.error(
                "Failed to load persisted state", key=self.key, error=str(e)
            )
            return None

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error(
                "Persisted state is not valid JSON", key=self.key, error=str(e)
            )
            return None

        if not isinstance(data, dict):
            logger.error("Persisted state is not an object", key=self.key)
            return None
        return data

    def save(self, payload: dict[str, Any]) -> bool:
        """Store `payload`, replacing what was there. Returns success."""
        try:
            serialized = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error("Failed to serialize state", key=self.key, error=str(e))
            return False

        try:
            with Session(self.engine) as session:
                record = session.get(StoredStateRecord, self.key)
                if record is None:
                    record = StoredStateRecord(
                        key=self.key,
                        payload=serialized,
                        version=str(payload.get("version", EXPORT_VERSION)),
                    )
                else:
                    record.payload = serialized
                    record.version = str(payload.get("version", EXPORT_VERSION))
                    record.updated_at = datetime.now(UTC)
                session.add(record)
                session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to persist state", key=self.key, error=str(e))
            return False

        logger.debug("Persisted state", key=self.key, size=len(serialized))
        return True
