"""
Deployment Status Schemas

The reconnection status document is a static JSON file that browser
clients poll to decide whether to show a "deployment in progress"
overlay or a "new version available" banner. Deploy pipelines rewrite
it at each phase of a blue-green rollout.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DeploymentStatus(str, Enum):
    """
    Blue-green deployment phases.

    - NORMAL: application is running normally
    - PREPARING: build started, containers being prepared
    - DEPLOYING: new revision being deployed (green slot)
    - VERIFYING: health checks on the green revision
    - SWITCHING: traffic switch in progress
    - COMPLETED: deployment finished, back to normal soon
    - MAINTENANCE: manual maintenance mode
    """
    NORMAL = "normal"
    PREPARING = "preparing"
    DEPLOYING = "deploying"
    VERIFYING = "verifying"
    SWITCHING = "switching"
    COMPLETED = "completed"
    MAINTENANCE = "maintenance"


DEPLOYING_PHASES = frozenset({
    DeploymentStatus.PREPARING,
    DeploymentStatus.DEPLOYING,
    DeploymentStatus.VERIFYING,
    DeploymentStatus.SWITCHING,
    DeploymentStatus.MAINTENANCE,
})


class ReconnectionStatus(BaseModel):
    """
    Status document served to clients.

    Keys are camelCase on disk and on the wire since the same file is
    read by the browser-side monitor scripts.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    status: DeploymentStatus = Field(
        default=DeploymentStatus.NORMAL,
        description="Current deployment phase",
    )
    reconnecting_message: Optional[str] = Field(
        default=None,
        description="Message shown while a client is reconnecting",
    )
    deployment_message: Optional[str] = Field(
        default=None,
        description="Message shown while a deployment is in progress",
    )
    version: Optional[str] = Field(
        default=None,
        description="Human-readable version number",
    )
    commit: Optional[str] = Field(
        default=None,
        description="Current commit SHA (primary identifier for version detection)",
    )
    incoming_commit: Optional[str] = Field(
        default=None,
        description="Commit SHA being deployed",
    )
    features: Optional[list[str]] = Field(
        default=None,
        description="Release highlights for the incoming version",
    )
    estimated_duration_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Expected deployment duration",
    )

    @property
    def is_deploying(self) -> bool:
        return self.status in DEPLOYING_PHASES or bool(self.deployment_message)
