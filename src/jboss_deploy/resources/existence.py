"""Check whether a resource exists in the management model."""
import logging
from typing import Any

from ..exceptions import OperationFailed
from ..management.address import Address, child_segment, parent_address
from ..management.operations import (
    RESULT,
    create_read_resource_operation,
    get_failure_description,
    is_successful,
)
from .schema import ExistenceResult

logger = logging.getLogger(__name__)


def resource_exists(address: Address, client: Any) -> ExistenceResult:
    """Look for the resource among its parent's children.

    Reads the parent non-recursively. A parent without any children of the
    requested type means the resource does not exist.

    Args:
        address: Full address of the resource
        client: Client used to read the parent

    Returns:
        ExistenceResult, truthy when the resource exists

    Raises:
        EmptyAddress: If the address is empty
        OperationFailed: If the parent cannot be read
    """
    child_type, child_name = child_segment(address)
    parent = parent_address(address)

    result = client.execute(create_read_resource_operation(parent, recursive=False))
    if not is_successful(result):
        raise OperationFailed(get_failure_description(result), dict(result))

    model = result.get(RESULT) or {}
    children = model.get(child_type) if isinstance(model, dict) else None
    if not children:
        logger.debug(f"No {child_type} children under {parent}")
        return ExistenceResult(found=False, child_count=0)

    names = _child_names(children)
    found = child_name in names
    logger.debug(
        f"Resource {address} {'exists' if found else 'not found'} "
        f"({len(names)} {child_type} children)"
    )
    return ExistenceResult(found=found, child_count=len(names))


def _child_names(children: Any) -> list[str]:
    # Children come back as {name: model}, or as a list of names or {name: model} pairs
    if isinstance(children, dict):
        return list(children)
    names = []
    for entry in children:
        if isinstance(entry, dict):
            names.extend(entry)
        else:
            names.append(str(entry))
    return names
