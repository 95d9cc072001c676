"""Deployment plans and execution results."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union


class DeploymentType(str, Enum):
    """What a deploy goal asks for."""
    ADD = "add"
    DEPLOY = "deploy"
    FORCE_ADD = "force_add"
    FORCE_DEPLOY = "force_deploy"
    REDEPLOY = "redeploy"
    UNDEPLOY = "undeploy"
    UNDEPLOY_IGNORE_MISSING = "undeploy_ignore_missing"


@dataclass(frozen=True)
class Content:
    """A deployment archive and the name it is deployed under."""
    path: Path
    # Defaults to the archive's file name
    name: Optional[str] = None

    @property
    def deployment_name(self) -> str:
        return self.name or Path(self.path).name


@dataclass(frozen=True)
class AddDeployment:
    """Upload new content; deploy it when enabled."""
    content: Content
    enabled: bool


@dataclass(frozen=True)
class ReplaceDeployment:
    """Replace an existing deployment with new content."""
    content: Content
    existing_name: str
    enabled: bool


@dataclass(frozen=True)
class RemoveDeployment:
    """Undeploy and remove an existing deployment."""
    existing_name: str


@dataclass(frozen=True)
class NoOpPlan:
    """Nothing to do."""
    reason: str


DeploymentPlan = Union[AddDeployment, ReplaceDeployment, RemoveDeployment, NoOpPlan]


class ActionOutcome(str, Enum):
    EXECUTED = "executed"
    FAILED = "failed"
    NOT_EXECUTED = "not_executed"
    ROLLED_BACK = "rolled_back"
    CONFIGURATION_MODIFIED_REQUIRES_RESTART = "configuration_modified_requires_restart"


@dataclass
class ActionResult:
    """Outcome of one step of a submitted deployment plan."""
    operation: str
    deployment: str
    outcome: ActionOutcome
    failure_description: Optional[Any] = None


class DeploymentStatus(str, Enum):
    SUCCESS = "success"
    REQUIRES_RESTART = "requires_restart"


@dataclass
class DeploymentResult:
    """Result of executing a deployment plan."""
    plan: DeploymentPlan
    status: DeploymentStatus = DeploymentStatus.SUCCESS
    actions: list[ActionResult] = field(default_factory=list)

    @property
    def requires_restart(self) -> bool:
        return self.status == DeploymentStatus.REQUIRES_RESTART
