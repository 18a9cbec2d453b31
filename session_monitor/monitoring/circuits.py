"""
Circuit Event Listener

Adapter between the connection host and the SessionTracker. The host
calls on_circuit_opened / on_circuit_closed once per circuit; dropped
and restored connections are logged but do not end the circuit.
"""

import logging

from .tracker import SessionTracker

logger = logging.getLogger("session_monitor.circuits")


class CircuitEventListener:
    """Forwards circuit lifecycle callbacks to a SessionTracker."""

    def __init__(self, tracker: SessionTracker) -> None:
        self.tracker = tracker

    def on_circuit_opened(self, circuit_id: str) -> None:
        logger.debug("Circuit opened: %s", circuit_id)
        self.tracker.on_session_started(circuit_id)

    def on_circuit_closed(self, circuit_id: str) -> None:
        logger.debug("Circuit closed: %s", circuit_id)
        self.tracker.on_session_ended(circuit_id)

    def on_connection_down(self, circuit_id: str) -> None:
        logger.debug("Connection down for circuit %s", circuit_id)

    def on_connection_up(self, circuit_id: str) -> None:
        logger.debug("Connection restored for circuit %s", circuit_id)
