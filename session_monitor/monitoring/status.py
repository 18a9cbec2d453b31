"""
Deployment Status File

Reads and writes the reconnection status document that clients poll.
A missing or unreadable file means "normal": clients must never be
told a deployment is running because of a broken status file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from ..schemas import ReconnectionStatus

logger = logging.getLogger("session_monitor.status")


class StatusFile:
    """JSON status document on local disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def read(self) -> ReconnectionStatus:
        """
        Load the current status.

        Returns:
            Parsed status, or the default NORMAL status when the file is
            missing or invalid
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ReconnectionStatus()
        except OSError as e:
            logger.warning("Could not read status file %s: %s", self.path, e)
            return ReconnectionStatus()

        try:
            return ReconnectionStatus.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Invalid status file %s: %s", self.path, e)
            return ReconnectionStatus()

    def write(self, status: ReconnectionStatus) -> None:
        """Atomically replace the status file (camelCase keys)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = status.model_dump(mode="json", by_alias=True, exclude_none=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=".status-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

        logger.info("Deployment status set to %s", status.status.value)
