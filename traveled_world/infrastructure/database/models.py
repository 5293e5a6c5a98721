"""Database models for persisted store state.

The whole store is kept as one JSON document per key, mirroring the export
payload, so the schema never has to follow entity changes.
"""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StoredStateRecord(SQLModel, table=True):  # type: ignore[call-arg]
    """Serialized `{cities, trips, preferences}` under a storage key."""

    __tablename__: str = "stored_state"  # type: ignore[assignment]

    key: str = Field(primary_key=True, max_length=100)
    payload: str  # JSON serialized export document
    version: str
    updated_at: datetime = Field(default_factory=_utcnow, index=True)
