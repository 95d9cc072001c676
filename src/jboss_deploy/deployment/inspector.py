"""Look up existing deployments by name or pattern."""
import logging
import re
from typing import Any, Optional

from ..exceptions import AmbiguousCriteria, ConfigurationError, OperationFailed
from ..management.operations import (
    RESULT,
    create_list_deployments_operation,
    get_failure_description,
    is_successful,
)

logger = logging.getLogger(__name__)


def list_deployments(client: Any) -> list[str]:
    """Deployment names in the order the server reports them.

    CLI equivalent: ``:read-children-names(child-type=deployment)``
    """
    result = client.execute(create_list_deployments_operation())
    if not is_successful(result):
        raise OperationFailed(get_failure_description(result), dict(result))
    return [str(name) for name in (result.get(RESULT) or [])]


def resolve_existing_name(
    client: Any,
    name: Optional[str] = None,
    pattern: Optional[str] = None,
) -> Optional[str]:
    """Find an existing deployment.

    The pattern, when given, is matched against the whole name and wins
    over the exact name. When several deployments match, the first one in
    server order is returned.

    Returns:
        The matching deployment name, or None

    Raises:
        AmbiguousCriteria: If neither name nor pattern is given
        OperationFailed: If the deployments cannot be listed
    """
    if name is None and pattern is None:
        raise AmbiguousCriteria()

    regex = None
    if pattern is not None:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid deployment name pattern '{pattern}': {e}") from e

    for deployment in list_deployments(client):
        if regex is not None:
            if regex.fullmatch(deployment):
                logger.debug(f"Deployment {deployment} matches pattern {pattern}")
                return deployment
        elif deployment == name:
            return deployment
    return None
