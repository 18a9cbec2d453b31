"""
Session Monitor API

FastAPI application exposing live session metrics, history and
deployment window recommendations. All session monitor routes are
read-only; session events arrive through the circuit websocket host.

Endpoints:
- GET {prefix}/current: Current session metrics
- GET {prefix}/history: Snapshot history
- GET {prefix}/active-circuits: Open circuit ids
- GET {prefix}/deployment-windows: Ranked low-traffic windows
- GET {prefix}/can-deploy: Deploy-now check
- GET /reconnection-status.json: Deployment status document
- GET /health: Health check
- GET /metrics: Prometheus metrics
- WS /circuits/ws: Circuit host (one websocket per circuit)
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import datetime, UTC
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .. import __version__
from ..config import settings
from ..metrics import metrics, setup_metrics
from ..monitoring import CircuitEventListener, SessionTracker, StatusFile
from ..schemas import (
    ActiveCircuitsResponse,
    CanDeployResponse,
    DeploymentWindow,
    SessionMetrics,
    SessionSnapshot,
)
from ..utils.logger import get_logger
from .auth import require_api_token, require_metrics_token
from .dependencies import get_circuit_listener, get_session_tracker, get_status_file

logger = get_logger("session_monitor.api")


async def _sample_history(tracker: SessionTracker, interval_seconds: int) -> None:
    """Record a history snapshot every `interval_seconds`."""
    while True:
        await asyncio.sleep(interval_seconds)
        tracker.capture_snapshot()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Creates the process-wide services and the periodic snapshot
    sampler, and stops the sampler on shutdown.
    """
    tracker = SessionTracker(
        max_history=settings.history_max_snapshots,
        max_query_count=settings.history_query_max_count,
        max_lookback_hours=settings.deployment_window_max_lookback_hours,
        max_window_results=settings.deployment_windows_max_results,
        metrics_enabled=settings.metrics_enabled,
    )
    app.state.session_tracker = tracker
    app.state.circuit_listener = CircuitEventListener(tracker)
    app.state.status_file = StatusFile(settings.status_file_path)

    if settings.metrics_enabled:
        setup_metrics()

    sampler: Optional[asyncio.Task] = None
    if settings.snapshot_interval_seconds > 0:
        sampler = asyncio.create_task(
            _sample_history(tracker, settings.snapshot_interval_seconds)
        )
    logger.info(
        "Session monitor started (history capacity %d, sampling every %ss)",
        settings.history_max_snapshots,
        settings.snapshot_interval_seconds,
    )

    yield

    # Cleanup
    if sampler:
        sampler.cancel()
        with suppress(asyncio.CancelledError):
            await sampler
    logger.info("Session monitor stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Session Monitor API",
        description="Live circuit tracking and deployment window planning",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins_list,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    return app


app = create_app()

router = APIRouter(
    prefix=settings.api_prefix,
    tags=["session-monitor"],
    dependencies=[Depends(require_api_token)],
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@router.get("/current", response_model=SessionMetrics)
def current_metrics(tracker: SessionTracker = Depends(get_session_tracker)):
    """Current session counters."""
    metrics.requests_total.labels(endpoint="/current").inc()
    return tracker.get_current_metrics()


@router.get("/history", response_model=list[SessionSnapshot])
def session_history(
    since: Optional[datetime] = Query(default=None),
    max_count: int = Query(default=settings.history_query_default_count, alias="maxCount"),
    tracker: SessionTracker = Depends(get_session_tracker),
):
    """
    Snapshot history, oldest first.

    maxCount is clamped to [1, HISTORY_QUERY_MAX_COUNT] rather than rejected.
    """
    metrics.requests_total.labels(endpoint="/history").inc()
    return tracker.get_history(since=_as_utc(since), max_count=max_count)


@router.get("/active-circuits", response_model=ActiveCircuitsResponse)
def active_circuits(tracker: SessionTracker = Depends(get_session_tracker)):
    """Ids of the currently open circuits."""
    metrics.requests_total.labels(endpoint="/active-circuits").inc()
    return tracker.get_active_circuits()


@router.get("/deployment-windows", response_model=list[DeploymentWindow])
def deployment_windows(
    window_minutes: int = Query(
        default=settings.deployment_window_default_minutes, alias="windowMinutes"
    ),
    lookback_hours: int = Query(
        default=settings.deployment_window_default_lookback_hours, alias="lookbackHours"
    ),
    tracker: SessionTracker = Depends(get_session_tracker),
):
    """Ranked low-traffic deployment windows from the recent history."""
    metrics.requests_total.labels(endpoint="/deployment-windows").inc()
    return tracker.find_deployment_windows(
        window_minutes=window_minutes,
        lookback_hours=lookback_hours,
    )


@router.get("/can-deploy", response_model=CanDeployResponse)
def can_deploy(
    max_allowed_sessions: int = Query(default=0, alias="maxAllowedSessions"),
    tracker: SessionTracker = Depends(get_session_tracker),
):
    """Check whether the live session count allows deploying now."""
    metrics.requests_total.labels(endpoint="/can-deploy").inc()
    return tracker.can_deploy(max_allowed_sessions=max_allowed_sessions)


app.include_router(router)


@app.get("/health")
def health_check(
    tracker: SessionTracker = Depends(get_session_tracker),
    status_file: StatusFile = Depends(get_status_file),
):
    """
    Health check endpoint.

    Returns service status with the live session count and the
    current deployment phase.
    """
    status = status_file.read()
    return {
        "status": "healthy",
        "version": __version__,
        "active_sessions": tracker.get_current_metrics().active_sessions,
        "history_size": tracker.history_size(),
        "deployment_status": status.status.value,
    }


@app.get("/metrics")
def metrics_endpoint(_: None = Depends(require_metrics_token)):
    """Expose Prometheus metrics with optional token auth."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/reconnection-status.json")
def reconnection_status(status_file: StatusFile = Depends(get_status_file)):
    """Deployment status document polled by clients."""
    status = status_file.read()
    return JSONResponse(
        content=status.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers={"Cache-Control": "no-cache"},
    )


@app.websocket("/circuits/ws")
async def circuit_socket(
    websocket: WebSocket,
    circuit_id: Optional[str] = None,
    listener: CircuitEventListener = Depends(get_circuit_listener),
):
    """
    Circuit host.

    Each accepted websocket is one circuit: opened on accept, closed on
    disconnect. "ping" messages are answered with "pong".
    """
    circuit_id = circuit_id or uuid4().hex
    await websocket.accept()
    listener.on_circuit_opened(circuit_id)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        listener.on_circuit_closed(circuit_id)


# Entry point for running directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "session_monitor.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_debug,
    )
