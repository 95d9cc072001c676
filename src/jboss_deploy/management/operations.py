"""Helpers for building management operations and reading their results.

Operations are plain dicts in the JSON form accepted by the HTTP management
endpoint::

    {"operation": "add", "address": [{"subsystem": "datasources"}], ...}
"""
import copy
import logging
from typing import Any, Mapping, Optional

from ..exceptions import InvalidProperty, OperationFailed
from .address import Address
from .values import PropertyValue, to_property_value

logger = logging.getLogger(__name__)

# Operation names
ADD = "add"
COMPOSITE = "composite"
DEPLOY = "deploy"
ENABLE = "enable"
FULL_REPLACE_DEPLOYMENT = "full-replace-deployment"
READ_ATTRIBUTE = "read-attribute"
READ_CHILDREN_NAMES = "read-children-names"
READ_RESOURCE = "read-resource"
REDEPLOY = "redeploy"
RELOAD = "reload"
REMOVE = "remove"
SHUTDOWN = "shutdown"
UNDEPLOY = "undeploy"

# Descriptor keys
OP = "operation"
OP_ADDR = "address"
CHILD_TYPE = "child-type"
NAME = "name"
RECURSIVE = "recursive"
ROLLBACK_ON_RUNTIME_FAILURE = "rollback-on-runtime-failure"
STEPS = "steps"

# Result keys
OUTCOME = "outcome"
RESULT = "result"
FAILURE_DESCRIPTION = "failure-description"
ROLLED_BACK = "rolled-back"
RESPONSE_HEADERS = "response-headers"
SUCCESS = "success"
FAILED = "failed"
CANCELLED = "cancelled"

# Well-known attributes
DEPLOYMENT = "deployment"
LAUNCH_TYPE = "launch-type"
SERVER_STATE = "server-state"


def create_operation(
    operation: str,
    address: Optional[Address] = None,
    **params: Any
) -> dict[str, Any]:
    """Create an operation descriptor.

    Keyword parameters use Python names; underscores become hyphens on the
    wire (``child_type`` -> ``child-type``).
    """
    op: dict[str, Any] = {
        OP: operation,
        OP_ADDR: address.to_model() if address is not None else [],
    }
    for key, value in params.items():
        op[key.replace("_", "-")] = value
    return op


def create_add_operation(address: Address) -> dict[str, Any]:
    return create_operation(ADD, address)


def create_remove_operation(address: Address, recursive: bool) -> dict[str, Any]:
    return create_operation(REMOVE, address, recursive=recursive)


def create_read_resource_operation(address: Address, recursive: bool = False) -> dict[str, Any]:
    return create_operation(READ_RESOURCE, address, recursive=recursive)


def create_read_attribute_operation(
    name: str,
    address: Optional[Address] = None
) -> dict[str, Any]:
    """Create a read-attribute operation, addressed at the root by default."""
    return create_operation(READ_ATTRIBUTE, address, name=name)


def create_read_children_names_operation(
    child_type: str,
    address: Optional[Address] = None
) -> dict[str, Any]:
    return create_operation(READ_CHILDREN_NAMES, address, child_type=child_type)


def create_enable_operation(address: Address) -> dict[str, Any]:
    return create_operation(ENABLE, address)


def create_list_deployments_operation() -> dict[str, Any]:
    """CLI equivalent: ``:read-children-names(child-type=deployment)``."""
    return create_read_children_names_operation(DEPLOYMENT)


def build_add_operation(
    address: Address,
    properties: Mapping[str, Any]
) -> dict[str, Any]:
    """Create an add operation with attribute values.

    Each property key is a comma-separated path. ``a,b`` sets field ``b`` of
    the nested object ``a``. Values are PropertyValue instances (raw values
    are classified with to_property_value).

    Raises:
        InvalidProperty: If a key or one of its path components is empty
    """
    op = create_add_operation(address)
    for key, raw_value in properties.items():
        path = key.split(",") if key else []
        if not path or any(not part for part in path):
            raise InvalidProperty(f"Invalid property {key!r}={raw_value!r}")

        node = op
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child

        value: PropertyValue = to_property_value(raw_value)
        node[path[-1]] = value.resolve()
    return op


class CompositeOperation:
    """Accumulates steps for an atomic composite operation.

    Steps run in the order they were added. The builder is never frozen:
    steps added after build() are included by the next build().
    """

    def __init__(self, rollback_on_runtime_failure: bool = True):
        self.rollback_on_runtime_failure = rollback_on_runtime_failure
        self._steps: list[dict[str, Any]] = []

    def add_step(self, op: dict[str, Any]) -> "CompositeOperation":
        """Append a step.

        Raises:
            ValueError: If the descriptor has no operation name
        """
        if not op.get(OP):
            raise ValueError(f"Invalid operation: {op}")
        self._steps.append(op)
        return self

    @property
    def steps(self) -> list[dict[str, Any]]:
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def build(self) -> dict[str, Any]:
        """Return the composite descriptor for the steps added so far."""
        op = create_operation(COMPOSITE)
        op[ROLLBACK_ON_RUNTIME_FAILURE] = self.rollback_on_runtime_failure
        op[STEPS] = copy.deepcopy(self._steps)
        return op


def create_composite_operation() -> CompositeOperation:
    """Empty composite with rollback-on-runtime-failure enabled."""
    return CompositeOperation(rollback_on_runtime_failure=True)


# --- Results ---

def is_successful(result: Mapping[str, Any]) -> bool:
    return result.get(OUTCOME) == SUCCESS


def get_failure_description(result: Mapping[str, Any]) -> str:
    """Describe a failed result; empty string when it succeeded."""
    if is_successful(result):
        return ""
    if result.get(FAILURE_DESCRIPTION) is not None:
        description = result[FAILURE_DESCRIPTION]
        if result.get(OP):
            return (
                f"Operation '{result[OP]}' at address '{result.get(OP_ADDR)}' "
                f"failed: {description}"
            )
        return f"Operation failed: {description}"
    return f"An unexpected response was found executing the operation. Result: {dict(result)}"


def read_result(result: Mapping[str, Any]) -> Any:
    return result.get(RESULT)


def read_result_as_string(result: Mapping[str, Any]) -> str:
    value = result.get(RESULT)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def raise_on_failure(result: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the result unchanged or raise OperationFailed."""
    if not is_successful(result):
        message = get_failure_description(result)
        logger.debug(message)
        raise OperationFailed(message, dict(result))
    return result
