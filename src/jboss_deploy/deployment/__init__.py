"""Deployment planning and execution for standalone servers."""
from .schema import (
    ActionOutcome,
    ActionResult,
    AddDeployment,
    Content,
    DeploymentPlan,
    DeploymentResult,
    DeploymentStatus,
    DeploymentType,
    NoOpPlan,
    RemoveDeployment,
    ReplaceDeployment,
)
from .inspector import list_deployments, resolve_existing_name
from .planner import DeploymentPlanner
from .executor import DeploymentExecutor
from .artifacts import ArtifactCoordinates, ArtifactResolver

__all__ = [
    "ActionOutcome",
    "ActionResult",
    "AddDeployment",
    "ArtifactCoordinates",
    "ArtifactResolver",
    "Content",
    "DeploymentExecutor",
    "DeploymentPlan",
    "DeploymentPlanner",
    "DeploymentResult",
    "DeploymentStatus",
    "DeploymentType",
    "NoOpPlan",
    "RemoveDeployment",
    "ReplaceDeployment",
    "list_deployments",
    "resolve_existing_name",
]
