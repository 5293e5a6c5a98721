"""Snapshot-based undo/redo history.

Every successful mutating command commits a deep copy of the cities and
trips. A cursor marks the snapshot that matches the live state; undo and redo
move the cursor and hand back fresh copies, so neither the live collections
nor callers ever alias what history holds.
"""

from collections.abc import Sequence
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ..domain.constants import MAX_HISTORY_LENGTH
from ..domain.entities import City, Trip


@dataclass(frozen=True)
class HistorySnapshot:
    """Immutable copy of the cities and trips at one point in time."""

    cities: tuple[City, ...]
    trips: tuple[Trip, ...]
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def capture(
        cls, cities: Sequence[City], trips: Sequence[Trip]
    ) -> "HistorySnapshot":
        return cls(
            cities=tuple(deepcopy(list(cities))),
            trips=tuple(deepcopy(list(trips))),
        )

    def restore(self) -> tuple[list[City], list[Trip]]:
        """Return copies of the captured collections, safe to mutate."""
        return deepcopy(list(self.cities)), deepcopy(list(self.trips))


class HistoryEngine:
    """Bounded timeline of snapshots with a cursor.

    The timeline always holds at least one snapshot. A new commit after an
    undo discards the redo branch. When the timeline grows past `max_length`
    the oldest snapshot is evicted.
    """

    def __init__(self, max_length: int = MAX_HISTORY_LENGTH):
        if max_length < 1:
            raise ValueError("History must keep at least one snapshot")
        self._max_length = max_length
        self._snapshots: list[HistorySnapshot] = [HistorySnapshot.capture([], [])]
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def max_length(self) -> int:
        return self._max_length

    @property
    def snapshots(self) -> tuple[HistorySnapshot, ...]:
        return tuple(self._snapshots)

    @property
    def current(self) -> HistorySnapshot:
        return self._snapshots[self._cursor]

    def commit(self, cities: Sequence[City], trips: Sequence[Trip]) -> None:
        """Record the state produced by a successful mutation."""
        del self._snapshots[self._cursor + 1 :]
        self._snapshots.append(HistorySnapshot.capture(cities, trips))
        self._cursor = len(self._snapshots) - 1

        if len(self._snapshots) > self._max_length:
            self._snapshots.pop(0)
            self._cursor = max(0, self._cursor - 1)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def undo(self) -> tuple[list[City], list[Trip]] | None:
        """Step back one snapshot.

        Returns:
            Copies of the cities and trips to make live, or None at the start
            of the timeline
        """
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self.current.restore()

    def redo(self) -> tuple[list[City], list[Trip]] | None:
        """Step forward one snapshot, or return None at the end of the timeline."""
        if not self.can_redo():
            return None
        self._cursor += 1
        return self.current.restore()

    def reset(self, cities: Sequence[City] = (), trips: Sequence[Trip] = ()) -> None:
        """Discard the timeline and start over from the given state."""
        self._snapshots = [HistorySnapshot.capture(cities, trips)]
        self._cursor = 0
