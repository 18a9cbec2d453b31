"""
Prometheus Metrics

Defines all metrics exposed by the session monitor service.
Metrics mirror the in-memory session counters so that alerting and
long-term trend storage can live outside the process.
"""

import logging

from prometheus_client import Counter, Gauge, start_http_server

from ..config import settings
from ..schemas import SessionMetrics

logger = logging.getLogger("session_monitor.metrics")


class SessionMonitorMetrics:
    """
    Container for all Prometheus metrics.

    Organized by category:
    - Session metrics
    - History metrics
    - Request metrics
    """

    def __init__(self):
        """Initialize all metrics."""

        # =====================================================================
        # Session Metrics
        # =====================================================================
        self.active_sessions = Gauge(
            "session_monitor_active_sessions",
            "Number of currently open sessions",
        )

        self.peak_sessions = Gauge(
            "session_monitor_peak_sessions",
            "Highest number of concurrent sessions since startup",
        )

        self.sessions_started = Gauge(
            "session_monitor_sessions_started",
            "Sessions opened since startup",
        )

        self.sessions_ended = Gauge(
            "session_monitor_sessions_ended",
            "Sessions closed since startup",
        )

        self.average_session_duration = Gauge(
            "session_monitor_average_session_duration_seconds",
            "Mean duration of ended sessions in seconds",
        )

        self.absorbed_events = Counter(
            "session_monitor_absorbed_events_total",
            "Duplicate start or unknown end events absorbed without effect",
            labelnames=["event"],
        )

        # =====================================================================
        # History Metrics
        # =====================================================================
        self.history_size = Gauge(
            "session_monitor_history_size",
            "Number of snapshots retained in the history ring",
        )

        # =====================================================================
        # Request Metrics
        # =====================================================================
        self.requests_total = Counter(
            "session_monitor_requests_total",
            "Total number of session monitor API requests",
            labelnames=["endpoint"],
        )


# Global metrics instance
metrics = SessionMonitorMetrics()


def setup_metrics() -> None:
    """
    Setup Prometheus metrics server.

    Starts HTTP server on configured port to expose metrics.
    """
    if settings.metrics_external_enabled:
        try:
            start_http_server(settings.metrics_port)
            logger.info("Metrics server started on port %d", settings.metrics_port)
        except Exception as e:
            logger.warning("Failed to start metrics server: %s", e)


def export_session_metrics(current: SessionMetrics, history_size: int) -> None:
    """
    Push the latest session counters into the gauges.

    Args:
        current: Snapshot of the session counters
        history_size: Number of entries in the history ring
    """
    metrics.active_sessions.set(current.active_sessions)
    metrics.peak_sessions.set(current.peak_sessions)
    metrics.sessions_started.set(current.total_sessions_started)
    metrics.sessions_ended.set(current.total_sessions_ended)
    metrics.average_session_duration.set(current.average_session_duration_seconds)
    metrics.history_size.set(history_size)
