"""
Session History Ring

Bounded, append-only buffer of session snapshots used for trend
charts and deployment window analysis. Oldest entries are evicted
first once capacity is reached.

Not thread-safe on its own; SessionTracker guards it with its lock.
"""

from collections import deque
from datetime import datetime
from typing import Deque, Iterator, Optional

from ..schemas import SessionSnapshot

DEFAULT_CAPACITY = 10000
DEFAULT_QUERY_COUNT = 100
MAX_QUERY_COUNT = 10000


class SessionHistory:
    """Ring buffer of SessionSnapshot entries in chronological order."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        max_query_count: int = MAX_QUERY_COUNT,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._snapshots: Deque[SessionSnapshot] = deque(maxlen=capacity)
        self._max_query_count = max(1, max_query_count)

    @property
    def capacity(self) -> int:
        return self._snapshots.maxlen

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[SessionSnapshot]:
        return iter(self._snapshots)

    def append(self, snapshot: SessionSnapshot) -> SessionSnapshot:
        """
        Add a snapshot at the tail, evicting the oldest entry on overflow.

        A snapshot stamped earlier than the current tail (clock skew) is
        re-stamped with the tail's timestamp so ordering never breaks.

        Returns:
            The snapshot as stored
        """
        if self._snapshots and snapshot.timestamp < self._snapshots[-1].timestamp:
            snapshot = snapshot.model_copy(
                update={"timestamp": self._snapshots[-1].timestamp}
            )
        self._snapshots.append(snapshot)
        return snapshot

    def query(
        self,
        since: Optional[datetime] = None,
        max_count: int = DEFAULT_QUERY_COUNT,
    ) -> list[SessionSnapshot]:
        """
        Return snapshots taken at or after `since`, oldest first.

        When more than `max_count` entries match, the newest `max_count`
        are kept. `max_count` is clamped to [1, max_query_count].

        Args:
            since: Lower timestamp bound (inclusive); None returns all
            max_count: Maximum number of snapshots to return

        Returns:
            Chronologically ordered snapshots
        """
        limit = min(max(1, max_count), self._max_query_count)
        if since is None:
            matches = list(self._snapshots)
        else:
            matches = [s for s in self._snapshots if s.timestamp >= since]
        return matches[-limit:]

    def between(self, start: datetime, end: datetime) -> list[SessionSnapshot]:
        """Return snapshots with start <= timestamp <= end, oldest first."""
        return [s for s in self._snapshots if start <= s.timestamp <= end]
