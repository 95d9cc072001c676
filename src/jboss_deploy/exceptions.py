"""Exception hierarchy for jboss-deploy.

Every error raised by the library derives from JBossDeployError so the CLI
can fail a goal with one except clause.
"""
from typing import Any, Optional


class JBossDeployError(Exception):
    """Base class for all jboss-deploy errors."""
    pass


class ConfigurationError(JBossDeployError):
    """Invalid or contradictory goal configuration."""
    pass


class InvalidAddressSegment(JBossDeployError):
    """An address segment is not a single key=value pair."""

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__(f"{segment} is not a valid address segment")


class EmptyAddress(JBossDeployError):
    """An operation needed the child or parent of an empty address."""

    def __init__(self):
        super().__init__("The address is empty.")


class MissingAddress(JBossDeployError):
    """Neither the goal nor the resource defines an address."""

    def __init__(self):
        super().__init__("You must specify the address to deploy the resource to.")


class InvalidProperty(JBossDeployError):
    """A resource property key or typed literal value is malformed."""
    pass


class InvalidCommand(JBossDeployError):
    """A CLI operation string could not be parsed."""
    pass


class ResourceAlreadyExists(JBossDeployError):
    """The resource exists and force mode is disabled."""

    def __init__(self, address: Any):
        self.address = address
        super().__init__(f"Resource {address} already exists.")


class NoProfilesConfigured(JBossDeployError):
    """Domain resources need at least one profile to be placed in."""

    def __init__(self):
        super().__init__("Cannot add resources when no profiles were defined.")


class AmbiguousCriteria(JBossDeployError):
    """Neither a deployment name nor a name pattern was supplied."""

    def __init__(self):
        super().__init__(
            "deployment name and deployment name pattern are both missing. One of them must "
            "be set in order to find an existing deployment."
        )


class OperationFailed(JBossDeployError):
    """The server reported a failed outcome for an operation.

    ``description`` holds the server's failure-description exactly as sent;
    the message adds the operation context.
    """

    def __init__(self, message: str, result: Optional[dict] = None):
        self.result = result
        if result and result.get("failure-description") is not None:
            self.description = result["failure-description"]
        else:
            self.description = message
        super().__init__(message)


class ManagementConnectionError(JBossDeployError):
    """The management endpoint could not be reached."""
    pass


class InvalidHost(JBossDeployError):
    """The management host name could not be resolved."""

    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(f"Host name '{hostname}' is invalid.")


class DeploymentExecutionFailed(JBossDeployError):
    """A deployment action failed, was not executed or was rolled back."""

    def __init__(self, message: str, action_result: Any = None):
        self.action_result = action_result
        super().__init__(message)


class DeploymentNotFound(JBossDeployError):
    """No existing deployment matched the requested name or pattern."""

    def __init__(self, criteria: str):
        self.criteria = criteria
        super().__init__(f"No deployment matching '{criteria}' was found on the server.")


class UnsupportedOperation(JBossDeployError):
    """The goal cannot run against this kind of server."""
    pass


class ArtifactResolutionError(JBossDeployError):
    """An artifact could not be located or downloaded."""
    pass


class ServerStartError(JBossDeployError):
    """A locally launched server did not come up."""
    pass
