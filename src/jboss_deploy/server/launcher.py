"""Launch and control a local standalone server process."""
import logging
import subprocess
from typing import Any, Callable, Optional

from ..exceptions import JBossDeployError, ServerStartError
from ..management.operations import (
    RELOAD,
    SERVER_STATE,
    SHUTDOWN,
    create_operation,
    create_read_attribute_operation,
    is_successful,
    raise_on_failure,
    read_result_as_string,
)
from ..utils.connection import wait_until
from .config import ServerConfig

logger = logging.getLogger(__name__)

STARTING = "starting"
STOPPING = "stopping"


def build_launch_command(config: ServerConfig) -> list[str]:
    """
    Build the command line that boots a standalone server.

    Raises:
        ServerStartError: If jboss-modules.jar is missing from the home directory
    """
    modules_jar = config.jboss_home / "jboss-modules.jar"
    if not modules_jar.exists():
        raise ServerStartError(f"Cannot find: {modules_jar}")

    cmd = [config.java_executable]
    cmd.extend(config.jvm_args)
    cmd.append(f"-Djboss.home.dir={config.jboss_home}")
    cmd.append(f"-Dorg.jboss.boot.log.file={config.log_dir / 'boot.log'}")
    cmd.append(f"-Dlogging.configuration=file:{config.config_dir / 'logging.properties'}")
    cmd.append(f"-Djboss.bundles.dir={config.bundles_path}")
    cmd.extend(["-jar", str(modules_jar.absolute())])
    cmd.extend(["-mp", str(config.modules_path)])
    cmd.extend(["-jaxpmodule", "javax.xml.jaxp-provider"])
    cmd.append("org.jboss.as.standalone")
    if config.server_config is not None:
        cmd.extend(["-server-config", config.server_config])
    if config.properties_file is not None:
        cmd.extend(["-P", config.properties_file])
    cmd.extend(config.server_args)
    return cmd


def is_server_ready(client: Any) -> bool:
    """True when server-state is readable and neither starting nor stopping."""
    try:
        result = client.execute(create_read_attribute_operation(SERVER_STATE))
    except JBossDeployError as e:
        logger.debug(f"Could not read server state: {e}")
        return False
    if not is_successful(result):
        return False
    state = read_result_as_string(result).lower()
    return state not in (STARTING, STOPPING)


def wait_for_reload(client: Any, timeout: float, interval: float = 0.1) -> None:
    """
    Reload the server and wait for it to come back.

    Raises:
        OperationFailed: If the server rejects the reload
        ServerStartError: If the server is not running again within timeout seconds
    """
    raise_on_failure(client.execute(create_operation(RELOAD)))
    if not wait_until(lambda: is_server_ready(client), timeout, interval):
        raise ServerStartError(f"The server did not reload within {timeout} seconds.")
    logger.info("Server reloaded")


class StandaloneServer:
    """
    A standalone server process plus its management connection.

    Usage:
        server = StandaloneServer(config, connection)
        server.start()
        server.wait_for_start()
        ...
        server.stop()
    """

    def __init__(
        self,
        config: ServerConfig,
        connection: Any,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self.config = config
        self.connection = connection
        self._popen = popen
        self._process: Optional[subprocess.Popen] = None

    @property
    def process(self) -> Optional[subprocess.Popen]:
        return self._process

    def start(self) -> None:
        """Launch the server process. Returns without waiting for it to boot."""
        if self._process is not None and self._process.poll() is None:
            raise ServerStartError("The server is already running.")

        cmd = build_launch_command(self.config)
        logger.info(f"JAVA_HOME={self.config.java_home}")
        logger.info(f"JBOSS_HOME={self.config.jboss_home}")
        logger.debug(f"Launch command: {' '.join(cmd)}")
        try:
            self._process = self._popen(cmd, cwd=str(self.config.jboss_home))
        except OSError as e:
            raise ServerStartError(f"Could not launch {cmd[0]}: {e}") from e

    def is_running(self) -> bool:
        """Check the server state over the management connection."""
        if self._process is not None and self._process.poll() is not None:
            return False
        try:
            client = self.connection.get_client()
        except JBossDeployError as e:
            logger.debug(f"Server not reachable yet: {e}")
            # Drop the half-open client so the next check reconnects
            self.connection.close()
            return False
        return is_server_ready(client)

    def wait_for_start(self, timeout: Optional[float] = None, interval: float = 0.5) -> None:
        """
        Block until the server is running.

        Raises:
            ServerStartError: If the process exits or the timeout elapses
        """
        timeout = self.config.startup_timeout if timeout is None else timeout
        if wait_until(self.is_running, timeout, interval):
            logger.info("Server is running")
            return

        exit_code = self._process.poll() if self._process is not None else None
        self.stop()
        if exit_code is not None:
            raise ServerStartError(f"The server process exited with code {exit_code}.")
        raise ServerStartError(f"Server did not start within {timeout} seconds.")

    def stop(self, timeout: float = 5.0) -> None:
        """Shut the server down, terminating the process if it does not exit."""
        try:
            if self.is_running():
                self.connection.get_client().execute(create_operation(SHUTDOWN))
        except JBossDeployError as e:
            logger.debug(f"Shutdown operation failed: {e}")
        finally:
            self.connection.close()

        if self._process is None:
            return
        try:
            self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Server did not stop, terminating the process")
            self._process.terminate()
            try:
                self._process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait()
        logger.info("Server stopped")
