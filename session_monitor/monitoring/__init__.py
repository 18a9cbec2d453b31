# Session monitoring
from .history import SessionHistory
from .windows import find_deployment_windows
from .tracker import SessionTracker
from .circuits import CircuitEventListener
from .status import StatusFile

__all__ = [
    "SessionHistory",
    "find_deployment_windows",
    "SessionTracker",
    "CircuitEventListener",
    "StatusFile",
]
