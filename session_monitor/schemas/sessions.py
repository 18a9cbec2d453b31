"""
Session Schemas

Point-in-time session metrics, history snapshots and deployment
window recommendations returned by the session monitor API.
"""

from datetime import datetime, UTC

from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class SessionMetrics(BaseModel):
    """
    Point-in-time view of the session counters.

    Invariant: total_sessions_started - total_sessions_ended == active_sessions.
    """
    model_config = ConfigDict(frozen=True)

    active_sessions: int = Field(
        default=0,
        ge=0,
        description="Number of sessions currently open",
    )
    peak_sessions: int = Field(
        default=0,
        ge=0,
        description="Highest active_sessions value observed since startup",
    )
    total_sessions_started: int = Field(
        default=0,
        ge=0,
        description="Sessions opened since startup",
    )
    total_sessions_ended: int = Field(
        default=0,
        ge=0,
        description="Sessions closed since startup",
    )
    average_session_duration_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Mean duration of ended sessions (0 when none ended)",
    )
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When this snapshot was produced",
    )


class SessionSnapshot(BaseModel):
    """One entry of the session history ring."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="Sampling instant",
    )
    active_sessions: int = Field(
        default=0,
        ge=0,
        description="Active sessions at the sampling instant",
    )
    sessions_started: int = Field(
        default=0,
        ge=0,
        description="Sessions started since the previous snapshot",
    )
    sessions_ended: int = Field(
        default=0,
        ge=0,
        description="Sessions ended since the previous snapshot",
    )


class DeploymentWindow(BaseModel):
    """
    Candidate deployment window.

    Aggregates the active session counts sampled between start_time
    and end_time. A window with no sessions at all is the safest
    moment to roll out a new version.
    """
    start_time: datetime
    end_time: datetime
    max_active_sessions: int = Field(default=0, ge=0)
    average_active_sessions: float = Field(default=0.0, ge=0.0)
    zero_sessions_window: bool = Field(
        default=True,
        description="True when no session was active during the whole window",
    )
    sample_count: int = Field(
        default=0,
        ge=0,
        description="Number of samples aggregated for this window",
    )


class CanDeployResponse(BaseModel):
    """Result of a deploy-now check against the live session count."""
    can_deploy: bool
    active_sessions: int = Field(ge=0)
    max_allowed_sessions: int = Field(ge=0)
    reason: str
    timestamp: datetime = Field(default_factory=_utc_now)


class ActiveCircuitsResponse(BaseModel):
    """Identifiers of the currently open circuits."""
    count: int = Field(ge=0)
    circuit_ids: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utc_now)
