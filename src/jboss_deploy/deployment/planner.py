"""Choose a deployment plan from the requested type and the server's state."""
import logging
from typing import Any, Optional

from ..exceptions import DeploymentNotFound, UnsupportedOperation
from ..management.address import Address
from ..management.operations import (
    DEPLOYMENT,
    create_read_attribute_operation,
    raise_on_failure,
    read_result,
)
from .inspector import resolve_existing_name
from .schema import (
    AddDeployment,
    Content,
    DeploymentPlan,
    DeploymentType,
    NoOpPlan,
    RemoveDeployment,
    ReplaceDeployment,
)

logger = logging.getLogger(__name__)


def require_standalone(client: Any) -> None:
    """Deployment plans only target standalone servers."""
    if client.is_domain:
        raise UnsupportedOperation(
            "Deployments to a domain controller are not supported, "
            "target a standalone server instead."
        )


class DeploymentPlanner:
    """Turns a DeploymentType into a concrete plan."""

    def __init__(self, client: Any):
        require_standalone(client)
        self.client = client

    def plan(
        self,
        deployment_type: DeploymentType,
        content: Content,
        match_pattern: Optional[str] = None,
    ) -> DeploymentPlan:
        """
        Build the plan for one deployment.

        Args:
            deployment_type: Requested mode
            content: Archive and deployment name
            match_pattern: Regular expression used instead of the deployment
                name to find the deployment to replace or remove

        Raises:
            DeploymentNotFound: For REDEPLOY or UNDEPLOY without a match
            OperationFailed: If the server cannot be queried
        """
        deployment_type = DeploymentType(deployment_type)
        name = content.deployment_name

        if deployment_type == DeploymentType.ADD:
            return AddDeployment(content, enabled=False)
        if deployment_type == DeploymentType.DEPLOY:
            return AddDeployment(content, enabled=True)

        existing = resolve_existing_name(self.client, name, match_pattern)
        criteria = match_pattern or name
        logger.debug(f"{deployment_type.name}: existing deployment for '{criteria}' is {existing}")

        if deployment_type == DeploymentType.FORCE_ADD:
            if existing is None:
                return AddDeployment(content, enabled=False)
            return ReplaceDeployment(content, existing, enabled=self._is_enabled(existing))

        if deployment_type == DeploymentType.FORCE_DEPLOY:
            if existing is None:
                return AddDeployment(content, enabled=True)
            return ReplaceDeployment(content, existing, enabled=True)

        if deployment_type == DeploymentType.REDEPLOY:
            if existing is None:
                raise DeploymentNotFound(criteria)
            return ReplaceDeployment(content, existing, enabled=True)

        if deployment_type == DeploymentType.UNDEPLOY:
            if existing is None:
                raise DeploymentNotFound(criteria)
            return RemoveDeployment(existing)

        # UNDEPLOY_IGNORE_MISSING
        if existing is None:
            return NoOpPlan(f"No deployment matching '{criteria}' to undeploy")
        return RemoveDeployment(existing)

    def _is_enabled(self, deployment_name: str) -> bool:
        address = Address(((DEPLOYMENT, deployment_name),))
        result = raise_on_failure(
            self.client.execute(create_read_attribute_operation("enabled", address))
        )
        return bool(read_result(result))
