# Data schemas for the Session Monitor
from .sessions import (
    SessionMetrics,
    SessionSnapshot,
    DeploymentWindow,
    CanDeployResponse,
    ActiveCircuitsResponse,
)
from .status import DeploymentStatus, ReconnectionStatus, DEPLOYING_PHASES

__all__ = [
    # Sessions
    "SessionMetrics",
    "SessionSnapshot",
    "DeploymentWindow",
    "CanDeployResponse",
    "ActiveCircuitsResponse",
    # Deployment status
    "DeploymentStatus",
    "ReconnectionStatus",
    "DEPLOYING_PHASES",
]
