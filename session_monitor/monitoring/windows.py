"""
Deployment Window Finder

Scans the session history for contiguous low-traffic spans where a
new version can be rolled out without disrupting live circuits.

A candidate window opens at every distinct snapshot timestamp inside
the lookback range and runs for a fixed length, so the window slides
one sample at a time. Each window is scored from the active count at
its start plus every snapshot taken inside it. Windows are ranked
best-first:
1. Zero-session windows
2. Lowest average active sessions
3. Lowest peak active sessions
4. Earliest start

Overlapping candidates are dropped in rank order, so every returned
window is disjoint from the better ones.
"""

from datetime import datetime, timedelta
from statistics import mean

from ..schemas import DeploymentWindow
from .history import SessionHistory

DEFAULT_WINDOW_MINUTES = 5
DEFAULT_LOOKBACK_HOURS = 24
MAX_LOOKBACK_HOURS = 168
DEFAULT_MAX_RESULTS = 10


def clamp_window_args(
    window_minutes: int,
    lookback_hours: int,
    max_lookback_hours: int = MAX_LOOKBACK_HOURS,
) -> tuple[int, int]:
    """Clamp query arguments into a valid range instead of rejecting them."""
    lookback_hours = min(max(1, lookback_hours), max(1, max_lookback_hours))
    window_minutes = min(max(1, window_minutes), lookback_hours * 60)
    return window_minutes, lookback_hours


def _rank_key(window: DeploymentWindow) -> tuple:
    return (
        not window.zero_sessions_window,
        window.average_active_sessions,
        window.max_active_sessions,
        window.start_time,
    )


def _overlaps(a: DeploymentWindow, b: DeploymentWindow) -> bool:
    return a.start_time < b.end_time and b.start_time < a.end_time


def find_deployment_windows(
    history: SessionHistory,
    now: datetime,
    window_minutes: int = DEFAULT_WINDOW_MINUTES,
    lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
    max_results: int = DEFAULT_MAX_RESULTS,
    max_lookback_hours: int = MAX_LOOKBACK_HOURS,
) -> list[DeploymentWindow]:
    """
    Find ranked deployment windows in the recent session history.

    Args:
        history: Snapshot history to scan
        now: End of the lookback range
        window_minutes: Length of each candidate window
        lookback_hours: How far back to look
        max_results: Maximum number of windows returned
        max_lookback_hours: Upper bound applied to lookback_hours

    Returns:
        Non-overlapping windows, best first. Empty when no full window
        fits between a snapshot inside the lookback range and now.
    """
    window_minutes, lookback_hours = clamp_window_args(
        window_minutes, lookback_hours, max_lookback_hours
    )
    in_range = history.between(now - timedelta(hours=lookback_hours), now)
    span = timedelta(minutes=window_minutes)

    candidates: list[DeploymentWindow] = []
    for index, snapshot in enumerate(in_range):
        start = snapshot.timestamp
        end = start + span
        if end > now:
            break
        # Only the newest sample at an instant sets the level the window opens with
        if index + 1 < len(in_range) and in_range[index + 1].timestamp == start:
            continue

        samples = [snapshot.active_sessions]
        for later in in_range[index + 1:]:
            if later.timestamp >= end:
                break
            samples.append(later.active_sessions)

        peak = max(samples)
        candidates.append(
            DeploymentWindow(
                start_time=start,
                end_time=end,
                max_active_sessions=peak,
                average_active_sessions=round(mean(samples), 4),
                zero_sessions_window=peak == 0,
                sample_count=len(samples),
            )
        )

    candidates.sort(key=_rank_key)
    limit = max(1, max_results)
    selected: list[DeploymentWindow] = []
    for window in candidates:
        if len(selected) == limit:
            break
        if any(_overlaps(window, chosen) for chosen in selected):
            continue
        selected.append(window)
    return selected
