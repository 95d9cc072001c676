"""Submit deployment plans and interpret their per-step outcomes."""
import logging
from typing import Any, Mapping, Optional

from ..exceptions import DeploymentExecutionFailed
from ..management.address import Address
from ..management.operations import (
    ADD,
    CANCELLED,
    DEPLOY,
    DEPLOYMENT,
    FAILED,
    FAILURE_DESCRIPTION,
    FULL_REPLACE_DEPLOYMENT,
    OP,
    OUTCOME,
    REDEPLOY,
    REMOVE,
    RESPONSE_HEADERS,
    RESULT,
    ROLLED_BACK,
    UNDEPLOY,
    CompositeOperation,
    create_composite_operation,
    create_operation,
    is_successful,
)
from ..utils.logging_config import timed_section_sync
from .planner import require_standalone
from .schema import (
    ActionOutcome,
    ActionResult,
    AddDeployment,
    DeploymentPlan,
    DeploymentResult,
    DeploymentStatus,
    NoOpPlan,
    RemoveDeployment,
    ReplaceDeployment,
)

logger = logging.getLogger(__name__)

_RESTART_STATES = ("reload-required", "restart-required")

_FAILURE_MESSAGES = {
    ActionOutcome.FAILED: "Deployment failed.",
    ActionOutcome.NOT_EXECUTED: "Deployment not executed.",
    ActionOutcome.ROLLED_BACK: "Deployment failed and was rolled back.",
}


def _deployment_address(name: str) -> Address:
    return Address(((DEPLOYMENT, name),))


def _content_param(content_hash: str) -> list[dict[str, Any]]:
    return [{"hash": {"BYTES_VALUE": content_hash}}]


def _requires_restart(headers: Optional[Mapping[str, Any]]) -> bool:
    if not headers:
        return False
    return bool(
        headers.get("operation-requires-reload")
        or headers.get("operation-requires-restart")
        or headers.get("process-state") in _RESTART_STATES
    )


class DeploymentExecutor:
    """Runs a plan as one composite operation."""

    def __init__(self, client: Any):
        require_standalone(client)
        self.client = client

    def execute(self, plan: DeploymentPlan) -> DeploymentResult:
        """
        Execute a deployment plan.

        Returns:
            DeploymentResult; status REQUIRES_RESTART when the server must be
            reloaded for the change to take effect

        Raises:
            DeploymentExecutionFailed: If a step failed, was not executed
                or was rolled back
        """
        composite = self.build_composite(plan)
        if len(composite) == 0:
            reason = plan.reason if isinstance(plan, NoOpPlan) else "no actions"
            logger.info(f"Nothing to deploy: {reason}")
            return DeploymentResult(plan=plan)

        with timed_section_sync("deployment", self.client.endpoint, plan=type(plan).__name__):
            response = self.client.execute(composite.build())

        actions = self.interpret(composite, response)
        result = DeploymentResult(plan=plan, actions=actions)

        failures = [a for a in actions if a.outcome in _FAILURE_MESSAGES]
        if failures:
            # Report the root failure rather than the steps cancelled because of it
            order = list(_FAILURE_MESSAGES)
            failure = min(failures, key=lambda a: order.index(a.outcome))
            message = _FAILURE_MESSAGES[failure.outcome]
            if failure.failure_description is not None:
                message = f"{message} {failure.failure_description}"
            raise DeploymentExecutionFailed(message, failure)

        if any(a.outcome == ActionOutcome.CONFIGURATION_MODIFIED_REQUIRES_RESTART for a in actions):
            result.status = DeploymentStatus.REQUIRES_RESTART
            logger.warning("Deployment requires the server to be reloaded")
        return result

    def build_composite(self, plan: DeploymentPlan) -> CompositeOperation:
        """Translate a plan into composite steps, uploading content first."""
        composite = create_composite_operation()

        if isinstance(plan, AddDeployment):
            name = plan.content.deployment_name
            content_hash = self.client.upload_content(plan.content.path)
            self._add_steps(composite, name, content_hash, plan.enabled)

        elif isinstance(plan, ReplaceDeployment):
            name = plan.content.deployment_name
            content_hash = self.client.upload_content(plan.content.path)
            if plan.existing_name == name:
                # full-replace-deployment keeps the current enabled state
                composite.add_step(create_operation(
                    FULL_REPLACE_DEPLOYMENT,
                    name=name,
                    content=_content_param(content_hash),
                ))
                if plan.enabled:
                    composite.add_step(create_operation(REDEPLOY, _deployment_address(name)))
            else:
                self._remove_steps(composite, plan.existing_name)
                self._add_steps(composite, name, content_hash, plan.enabled)

        elif isinstance(plan, RemoveDeployment):
            self._remove_steps(composite, plan.existing_name)

        return composite

    @staticmethod
    def _add_steps(composite: CompositeOperation, name: str, content_hash: str, enabled: bool) -> None:
        address = _deployment_address(name)
        composite.add_step(create_operation(
            ADD, address, runtime_name=name, content=_content_param(content_hash)
        ))
        if enabled:
            composite.add_step(create_operation(DEPLOY, address))

    @staticmethod
    def _remove_steps(composite: CompositeOperation, name: str) -> None:
        address = _deployment_address(name)
        composite.add_step(create_operation(UNDEPLOY, address))
        composite.add_step(create_operation(REMOVE, address))

    def interpret(self, composite: CompositeOperation, response: Mapping[str, Any]) -> list[ActionResult]:
        """Map a composite response to one ActionResult per step."""
        overall_failed = not is_successful(response)
        rolled_back = bool(response.get(ROLLED_BACK))
        step_results = response.get(RESULT) if isinstance(response.get(RESULT), dict) else {}
        top_headers = response.get(RESPONSE_HEADERS)

        actions = []
        for index, step in enumerate(composite.steps, start=1):
            name = step.get("name") or _step_deployment(step)
            step_result = step_results.get(f"step-{index}")

            if step_result is None:
                outcome = ActionOutcome.NOT_EXECUTED
                description = response.get(FAILURE_DESCRIPTION) if overall_failed else None
            elif step_result.get(OUTCOME) == FAILED:
                outcome = ActionOutcome.FAILED
                description = step_result.get(FAILURE_DESCRIPTION)
            elif step_result.get(OUTCOME) == CANCELLED:
                outcome = ActionOutcome.NOT_EXECUTED
                description = None
            elif overall_failed and rolled_back:
                outcome = ActionOutcome.ROLLED_BACK
                description = response.get(FAILURE_DESCRIPTION)
            elif _requires_restart(step_result.get(RESPONSE_HEADERS)) or _requires_restart(top_headers):
                outcome = ActionOutcome.CONFIGURATION_MODIFIED_REQUIRES_RESTART
                description = None
            else:
                outcome = ActionOutcome.EXECUTED
                description = None

            actions.append(ActionResult(step[OP], name, outcome, description))
            logger.debug(f"{step[OP]} {name}: {outcome.value}")

        # A failure reported only at the top level still fails the plan
        if overall_failed and not any(a.outcome in _FAILURE_MESSAGES for a in actions) and actions:
            actions[0].outcome = ActionOutcome.FAILED
            actions[0].failure_description = response.get(FAILURE_DESCRIPTION)
        return actions


def _step_deployment(step: Mapping[str, Any]) -> str:
    for segment in step.get("address", []):
        if DEPLOYMENT in segment:
            return segment[DEPLOYMENT]
    return ""
