"""
Session Tracker

Authoritative in-memory counters for live sessions (circuits).
Tracks the set of open session ids, running totals, peak
concurrency and mean session duration, and records a snapshot in
the history ring after every lifecycle event.

All state sits behind a single lock so the cross-field invariant
started - ended == active holds for every reader.

Duplicate start events and end events for unknown ids are absorbed:
they leave the counters untouched and are only counted separately.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Callable, Optional

from ..metrics import metrics, export_session_metrics
from ..schemas import (
    ActiveCircuitsResponse,
    CanDeployResponse,
    DeploymentWindow,
    SessionMetrics,
    SessionSnapshot,
)
from .history import DEFAULT_CAPACITY, DEFAULT_QUERY_COUNT, MAX_QUERY_COUNT, SessionHistory
from .windows import (
    DEFAULT_LOOKBACK_HOURS,
    DEFAULT_MAX_RESULTS,
    DEFAULT_WINDOW_MINUTES,
    MAX_LOOKBACK_HOURS,
    find_deployment_windows,
)

logger = logging.getLogger("session_monitor.tracker")


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class AbsorbedEvents:
    duplicate_starts: int = 0
    unknown_ends: int = 0


class SessionTracker:
    """
    Thread-safe session metrics aggregator.

    Construct one per process and hand it to whoever delivers session
    events and whoever serves queries.
    """

    def __init__(
        self,
        max_history: int = DEFAULT_CAPACITY,
        max_query_count: int = MAX_QUERY_COUNT,
        max_lookback_hours: int = MAX_LOOKBACK_HOURS,
        max_window_results: int = DEFAULT_MAX_RESULTS,
        clock: Optional[Callable[[], datetime]] = None,
        metrics_enabled: bool = False,
    ) -> None:
        """
        Initialize the tracker with zeroed counters.

        Args:
            max_history: Capacity of the snapshot history ring
            max_query_count: Hard ceiling for history queries
            max_lookback_hours: Upper bound for deployment window lookback
            max_window_results: Maximum number of deployment windows returned
            clock: Returns the current UTC time (injectable for tests)
            metrics_enabled: Mirror counters into Prometheus gauges
        """
        self._clock = clock or _utc_now
        self._lock = threading.Lock()
        self._history = SessionHistory(max_history, max_query_count)
        self._max_lookback_hours = max_lookback_hours
        self._max_window_results = max_window_results
        self.metrics_enabled = metrics_enabled

        # session id -> start instant
        self._active: dict[str, datetime] = {}
        self._peak = 0
        self._started = 0
        self._ended = 0
        self._average_duration = 0.0
        self._timed_sessions = 0
        self._started_since_snapshot = 0
        self._ended_since_snapshot = 0
        self.absorbed = AbsorbedEvents()

    # =========================================================================
    # Lifecycle events
    # =========================================================================

    def on_session_started(self, session_id: str) -> None:
        """Record a session start. A start for an already open id is absorbed."""
        with self._lock:
            now = self._clock()
            if session_id in self._active:
                self.absorbed.duplicate_starts += 1
                duplicate = True
            else:
                duplicate = False
                self._active[session_id] = now
                self._started += 1
                self._started_since_snapshot += 1
                self._peak = max(self._peak, len(self._active))
            self._append_snapshot(now)
            current = self._current_metrics(now)
            history_size = len(self._history)

        if duplicate:
            logger.debug("Duplicate start for session %s absorbed", session_id)
        else:
            logger.debug("Session %s started (%d active)", session_id, current.active_sessions)
        self._export(current, history_size, "duplicate_start" if duplicate else None)

    def on_session_ended(self, session_id: str) -> None:
        """Record a session end. An end for an unknown id is absorbed."""
        with self._lock:
            now = self._clock()
            started_at = self._active.pop(session_id, None)
            if started_at is None:
                self.absorbed.unknown_ends += 1
            else:
                self._ended += 1
                self._ended_since_snapshot += 1
                duration = max(0.0, (now - started_at).total_seconds())
                self._timed_sessions += 1
                self._average_duration += (
                    (duration - self._average_duration) / self._timed_sessions
                )
            self._append_snapshot(now)
            current = self._current_metrics(now)
            history_size = len(self._history)

        if started_at is None:
            logger.debug("End for unknown session %s absorbed", session_id)
        else:
            logger.debug("Session %s ended (%d active)", session_id, current.active_sessions)
        self._export(current, history_size, "unknown_end" if started_at is None else None)

    def capture_snapshot(self) -> SessionSnapshot:
        """Append a periodic sample of the active count to the history."""
        with self._lock:
            now = self._clock()
            snapshot = self._append_snapshot(now)
            current = self._current_metrics(now)
            history_size = len(self._history)
        self._export(current, history_size)
        return snapshot

    # =========================================================================
    # Queries
    # =========================================================================

    def get_current_metrics(self) -> SessionMetrics:
        with self._lock:
            return self._current_metrics(self._clock())

    def get_active_session_ids(self) -> list[str]:
        """Return open session ids, oldest session first."""
        with self._lock:
            ordered = sorted(self._active.items(), key=lambda item: item[1])
        return [session_id for session_id, _ in ordered]

    def get_active_circuits(self) -> ActiveCircuitsResponse:
        with self._lock:
            now = self._clock()
            ordered = sorted(self._active.items(), key=lambda item: item[1])
        return ActiveCircuitsResponse(
            count=len(ordered),
            circuit_ids=[session_id for session_id, _ in ordered],
            timestamp=now,
        )

    def has_active_sessions(self) -> bool:
        with self._lock:
            return len(self._active) > 0

    def get_history(
        self,
        since: Optional[datetime] = None,
        max_count: int = DEFAULT_QUERY_COUNT,
    ) -> list[SessionSnapshot]:
        with self._lock:
            return self._history.query(since=since, max_count=max_count)

    def history_size(self) -> int:
        with self._lock:
            return len(self._history)

    def find_deployment_windows(
        self,
        window_minutes: int = DEFAULT_WINDOW_MINUTES,
        lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
    ) -> list[DeploymentWindow]:
        """Rank low-traffic windows in the recent history (recomputed per call)."""
        with self._lock:
            return find_deployment_windows(
                self._history,
                now=self._clock(),
                window_minutes=window_minutes,
                lookback_hours=lookback_hours,
                max_results=self._max_window_results,
                max_lookback_hours=self._max_lookback_hours,
            )

    def can_deploy(self, max_allowed_sessions: int = 0) -> CanDeployResponse:
        """
        Check whether deploying right now is acceptable.

        Args:
            max_allowed_sessions: Highest active count still considered safe
                (negative values are treated as 0)
        """
        threshold = max(0, max_allowed_sessions)
        with self._lock:
            now = self._clock()
            active = len(self._active)

        if active == 0:
            reason = "No active sessions"
        elif active <= threshold:
            reason = f"{active} active session(s), within the allowed maximum of {threshold}"
        else:
            reason = f"{active} active session(s) exceed the allowed maximum of {threshold}"

        return CanDeployResponse(
            can_deploy=active <= threshold,
            active_sessions=active,
            max_allowed_sessions=threshold,
            reason=reason,
            timestamp=now,
        )

    # =========================================================================
    # Internals (caller holds the lock)
    # =========================================================================

    def _append_snapshot(self, now: datetime) -> SessionSnapshot:
        snapshot = self._history.append(
            SessionSnapshot(
                timestamp=now,
                active_sessions=len(self._active),
                sessions_started=self._started_since_snapshot,
                sessions_ended=self._ended_since_snapshot,
            )
        )
        self._started_since_snapshot = 0
        self._ended_since_snapshot = 0
        return snapshot

    def _current_metrics(self, now: datetime) -> SessionMetrics:
        return SessionMetrics(
            active_sessions=len(self._active),
            peak_sessions=self._peak,
            total_sessions_started=self._started,
            total_sessions_ended=self._ended,
            average_session_duration_seconds=self._average_duration,
            timestamp=now,
        )

    def _export(
        self,
        current: SessionMetrics,
        history_size: int,
        absorbed_event: Optional[str] = None,
    ) -> None:
        if not self.metrics_enabled:
            return
        if absorbed_event:
            metrics.absorbed_events.labels(event=absorbed_event).inc()
        export_session_metrics(current, history_size)
