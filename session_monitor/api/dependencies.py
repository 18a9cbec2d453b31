"""
API Dependencies

FastAPI dependency injection for the services created in the lifespan.
"""

from fastapi import HTTPException, Request, WebSocket

from ..monitoring import CircuitEventListener, SessionTracker, StatusFile


def _state_attr(state, name: str):
    service = getattr(state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return service


def get_session_tracker(request: Request) -> SessionTracker:
    """Get the session tracker owned by the running application."""
    return _state_attr(request.app.state, "session_tracker")


def get_status_file(request: Request) -> StatusFile:
    """Get the deployment status file."""
    return _state_attr(request.app.state, "status_file")


def get_circuit_listener(websocket: WebSocket) -> CircuitEventListener:
    """Get the circuit listener for websocket hosts."""
    return _state_attr(websocket.app.state, "circuit_listener")
