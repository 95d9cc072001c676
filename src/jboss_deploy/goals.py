"""Goals: the units of work the command line runs.

Each goal owns one ServerConnection for its lifetime and closes it when done.
Management goals check the if-exists / if-not-exists preconditions before
doing anything.
"""
import logging
import socket
import subprocess
import time
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import httpx

from .client.connection import ServerConnection
from .config.credentials import create_credential_resolver, prompt_credentials
from .config.settings import ConnectionSettings
from .deployment.artifacts import ArtifactCoordinates, ArtifactResolver
from .deployment.executor import DeploymentExecutor
from .deployment.planner import DeploymentPlanner
from .deployment.schema import Content, DeploymentResult, DeploymentType
from .exceptions import ConfigurationError, DeploymentExecutionFailed
from .management.operations import RELOAD, SHUTDOWN, create_operation, raise_on_failure
from .resources.engine import AddResourceEngine
from .resources.hooks import execute_commands
from .resources.schema import AddResourceResult, Commands, Resource
from .server.config import ServerConfig
from .server.launcher import StandaloneServer, wait_for_reload

logger = logging.getLogger(__name__)


def deploy_type(force: bool, deploy_enabled: bool = True) -> DeploymentType:
    """Deployment type for the deploy and run goals."""
    if deploy_enabled:
        return DeploymentType.FORCE_DEPLOY if force else DeploymentType.DEPLOY
    return DeploymentType.FORCE_ADD if force else DeploymentType.ADD


def undeploy_type(ignore_missing: bool) -> DeploymentType:
    return DeploymentType.UNDEPLOY_IGNORE_MISSING if ignore_missing else DeploymentType.UNDEPLOY


class Goal:
    """Base class: connection setup, preconditions and teardown."""

    name = ""
    check_preconditions = True

    def __init__(
        self,
        settings: ConnectionSettings,
        transport: Optional[httpx.BaseTransport] = None,
        resolve_host: Callable[[str], str] = socket.gethostbyname,
        prompt: Callable[[], tuple[str, str]] = prompt_credentials,
    ):
        self.settings = settings
        resolver = create_credential_resolver(
            username=settings.username,
            password=settings.password,
            server_id=settings.server_id,
            settings_file=settings.settings_file,
            prompt=prompt,
        )
        self.connection = ServerConnection(
            settings.hostname,
            settings.port,
            credential_resolver=resolver,
            timeout=settings.timeout,
            transport=transport,
            resolve_host=resolve_host,
        )

    def run(self) -> Any:
        """Run the goal; returns None when preconditions were not met."""
        host = self.connection.get_host_address()
        logger.info(
            f"Executing goal {self.name} on server {self.settings.hostname} ({host}) "
            f"port {self.settings.port}."
        )
        try:
            if self.check_preconditions and not self.connection.check_preconditions(
                self.settings.if_exists, self.settings.if_not_exists
            ):
                logger.info("Preconditions not met, skipping execution.")
                return None
            return self.execute()
        finally:
            self.connection.close()

    def execute(self) -> Any:
        raise NotImplementedError


class AddResourceGoal(Goal):
    """Add one or more resources, per profile on a domain controller."""

    name = "add-resource"

    def __init__(
        self,
        settings: ConnectionSettings,
        resources: Sequence[Resource],
        address: Optional[str] = None,
        profiles: Optional[Sequence[str]] = None,
        force: bool = True,
        dry_run: bool = False,
        **kwargs,
    ):
        super().__init__(settings, **kwargs)
        self.resources = list(resources)
        self.address = address
        self.profiles = list(profiles or [])
        self.force = force
        self.dry_run = dry_run

    def execute(self) -> AddResourceResult:
        engine = AddResourceEngine(self.connection.get_client())
        return engine.add(
            self.resources,
            base_address=self.address,
            profiles=self.profiles,
            force=self.force,
            dry_run=self.dry_run,
        )


class ExecuteCommandsGoal(Goal):
    """Run CLI operation strings against the server."""

    name = "execute-commands"

    def __init__(self, settings: ConnectionSettings, commands: Commands, **kwargs):
        super().__init__(settings, **kwargs)
        self.commands = commands

    def execute(self) -> int:
        if not self.commands:
            logger.warning("No commands were provided.")
            return 0
        return execute_commands(self.commands, self.connection.get_client())


class DeployGoal(Goal):
    """Deploy an archive that already exists on disk."""

    name = "deploy"

    def __init__(
        self,
        settings: ConnectionSettings,
        content: Optional[Content],
        force: bool = True,
        deploy_enabled: bool = True,
        match_pattern: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(settings, **kwargs)
        self.content = content
        self.force = force
        self.deploy_enabled = deploy_enabled
        self.match_pattern = match_pattern

    @property
    def deployment_type(self) -> DeploymentType:
        return deploy_type(self.force, self.deploy_enabled)

    def validate(self) -> None:
        if not Path(self.content.path).exists():
            raise ConfigurationError(f"The deployment '{self.content.path}' could not be found.")

    def execute(self) -> DeploymentResult:
        self.validate()
        return execute_deployment(
            self.connection.get_client(), self.deployment_type, self.content, self.match_pattern
        )


class DeployArtifactGoal(DeployGoal):
    """Deploy an archive resolved from coordinates or a file."""

    name = "deploy-artifact"

    def __init__(
        self,
        settings: ConnectionSettings,
        coordinates: Optional[ArtifactCoordinates] = None,
        file: Optional[str] = None,
        deployment_name: Optional[str] = None,
        resolver: Optional[ArtifactResolver] = None,
        force: bool = True,
        match_pattern: Optional[str] = None,
        **kwargs,
    ):
        self.coordinates = coordinates
        self.file = file
        self.deployment_name = deployment_name
        self.resolver = resolver or ArtifactResolver()
        super().__init__(
            settings,
            content=None,
            force=force,
            match_pattern=match_pattern,
            **kwargs,
        )

    @property
    def deployment_type(self) -> DeploymentType:
        return DeploymentType.FORCE_DEPLOY if self.force else DeploymentType.DEPLOY

    def validate(self) -> None:
        self.content = Content(resolve_artifact(self.resolver, self.coordinates, self.file),
                               self.deployment_name)


class UndeployArtifactGoal(Goal):
    """Undeploy and remove a deployment."""

    name = "undeploy-artifact"

    def __init__(
        self,
        settings: ConnectionSettings,
        coordinates: Optional[ArtifactCoordinates] = None,
        file: Optional[str] = None,
        deployment_name: Optional[str] = None,
        match_pattern: Optional[str] = None,
        ignore_missing: bool = True,
        **kwargs,
    ):
        super().__init__(settings, **kwargs)
        self.coordinates = coordinates
        self.file = file
        self.deployment_name = deployment_name
        self.match_pattern = match_pattern
        self.ignore_missing = ignore_missing

    def content(self) -> Content:
        """The deployment to remove; only its name is used."""
        if self.file:
            return Content(Path(self.file), self.deployment_name)
        if self.coordinates is not None:
            self.coordinates.validate()
            return Content(Path(self.coordinates.file_name), self.deployment_name)
        if self.deployment_name or self.match_pattern:
            return Content(Path(self.deployment_name or ""), self.deployment_name)
        raise ConfigurationError("Specify the artifact, file, deployment name or match pattern to undeploy")

    def execute(self) -> DeploymentResult:
        return execute_deployment(
            self.connection.get_client(),
            undeploy_type(self.ignore_missing),
            self.content(),
            self.match_pattern,
        )


class ShutdownGoal(Goal):
    """Shut the server down, or reload it and wait until it is back."""

    name = "shutdown"
    check_preconditions = False

    def __init__(
        self,
        settings: ConnectionSettings,
        reload: bool = False,
        reload_timeout: int = 30,
        **kwargs,
    ):
        super().__init__(settings, **kwargs)
        self.reload = reload
        self.reload_timeout = reload_timeout

    def execute(self) -> None:
        client = self.connection.get_client()
        if self.reload:
            wait_for_reload(client, self.reload_timeout)
        else:
            raise_on_failure(client.execute(create_operation(SHUTDOWN)))
            logger.info("Server shutdown requested")


class StartGoal(Goal):
    """Launch a local standalone server and wait until it is running."""

    name = "start"
    check_preconditions = False

    def __init__(
        self,
        settings: ConnectionSettings,
        server_config: ServerConfig,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        **kwargs,
    ):
        super().__init__(settings, **kwargs)
        self.server_config = server_config
        self.popen = popen

    def create_server(self) -> StandaloneServer:
        self.server_config.validate()
        return StandaloneServer(self.server_config, self.connection, popen=self.popen)

    def execute(self) -> StandaloneServer:
        server = self.create_server()
        logger.info("Server is starting up.")
        server.start()
        server.wait_for_start()
        return server


class RunGoal(StartGoal):
    """Launch a server, deploy an archive and block until the server stops.

    Ctrl+C stops the server.
    """

    name = "run"

    def __init__(
        self,
        settings: ConnectionSettings,
        server_config: ServerConfig,
        content: Content,
        force: bool = True,
        poll_interval: float = 1.0,
        **kwargs,
    ):
        super().__init__(settings, server_config, **kwargs)
        self.content = content
        self.force = force
        self.poll_interval = poll_interval

    def execute(self) -> DeploymentResult:
        if not Path(self.content.path).exists():
            raise ConfigurationError(
                f"The deployment '{Path(self.content.path).absolute()}' could not be found."
            )

        server = self.create_server()
        logger.info("Server is starting up. Press CTRL + C to stop the server.")
        server.start()
        try:
            server.wait_for_start()
            logger.info(f"Deploying application '{self.content.deployment_name}'")
            client = self.connection.get_client()
            result = execute_deployment(client, deploy_type(self.force), self.content)
            if result.requires_restart:
                raise_on_failure(client.execute(create_operation(RELOAD)))
            while server.is_running():
                time.sleep(self.poll_interval)
            return result
        except KeyboardInterrupt:
            logger.info("Stopping the server")
            raise
        finally:
            server.stop()


def resolve_artifact(
    resolver: ArtifactResolver,
    coordinates: Optional[ArtifactCoordinates],
    file: Optional[str],
) -> Path:
    """A given file wins over coordinates."""
    if file:
        return resolver.resolve_file(file)
    if coordinates is None:
        coordinates = ArtifactCoordinates(None, None, None)
    return resolver.resolve(coordinates)


def execute_deployment(
    client: Any,
    deployment_type: DeploymentType,
    content: Content,
    match_pattern: Optional[str] = None,
) -> DeploymentResult:
    """Plan and execute one deployment."""
    plan = DeploymentPlanner(client).plan(deployment_type, content, match_pattern)
    logger.info(f"Executing {deployment_type.name} of {content.deployment_name}: {type(plan).__name__}")
    try:
        result = DeploymentExecutor(client).execute(plan)
    except DeploymentExecutionFailed:
        logger.error(f"{deployment_type.name} of {content.deployment_name} failed")
        raise
    if result.requires_restart:
        logger.warning(f"{content.deployment_name}: the server must be reloaded for the change to apply")
    return result
