"""Configuration for a locally launched standalone server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import ConfigurationError

DEFAULT_JVM_ARGS = (
    "-Xms64m -Xmx512m -XX:MaxPermSize=256m -Djava.net.preferIPv4Stack=true "
    "-Dorg.jboss.resolver.warning=true -Dsun.rmi.dgc.client.gcInterval=3600000 "
    "-Dsun.rmi.dgc.server.gcInterval=3600000"
)
DEFAULT_STARTUP_TIMEOUT = 60

SERVER_BASE_DIR = "jboss.server.base.dir"
SERVER_CONFIG_DIR = "jboss.server.config.dir"
SERVER_LOG_DIR = "jboss.server.log.dir"


def split_args(args: Optional[str]) -> list[str]:
    """Split a space delimited argument string."""
    return args.split() if args else []


def _system_property(arg: str) -> tuple[Optional[str], Optional[str]]:
    """Return (key, value) for a ``-Dkey=value`` argument."""
    if not arg.startswith("-D"):
        return None, None
    key, _, value = arg[2:].partition("=")
    return key, value


@dataclass
class ServerConfig:
    """Where the server lives and how to launch it.

    ``-Djboss.server.base.dir``, ``-Djboss.server.config.dir`` and
    ``-Djboss.server.log.dir`` in the JVM or server arguments override the
    directories derived from the home directory.
    """
    jboss_home: Path
    java_home: Optional[str] = None
    modules_dir: Optional[str] = None
    bundles_dir: Optional[str] = None
    jvm_args: list[str] = field(default_factory=lambda: split_args(DEFAULT_JVM_ARGS))
    server_config: Optional[str] = None
    properties_file: Optional[str] = None
    server_args: list[str] = field(default_factory=list)
    startup_timeout: int = DEFAULT_STARTUP_TIMEOUT

    def __post_init__(self):
        self.jboss_home = Path(self.jboss_home)
        if self.java_home is None:
            self.java_home = os.environ.get("JAVA_HOME")

    def _override(self, key: str) -> Optional[str]:
        value = None
        for arg in [*self.jvm_args, *self.server_args]:
            arg_key, arg_value = _system_property(arg)
            if arg_key == key:
                value = arg_value
        return value

    @property
    def modules_path(self) -> Path:
        return Path(self.modules_dir) if self.modules_dir else self.jboss_home / "modules"

    @property
    def bundles_path(self) -> Path:
        return Path(self.bundles_dir) if self.bundles_dir else self.jboss_home / "bundles"

    @property
    def base_dir(self) -> Path:
        override = self._override(SERVER_BASE_DIR)
        return Path(override) if override else self.jboss_home / "standalone"

    @property
    def config_dir(self) -> Path:
        override = self._override(SERVER_CONFIG_DIR)
        return Path(override) if override else self.base_dir / "configuration"

    @property
    def log_dir(self) -> Path:
        override = self._override(SERVER_LOG_DIR)
        return Path(override) if override else self.base_dir / "log"

    @property
    def java_executable(self) -> str:
        if self.java_home:
            return str(Path(self.java_home) / "bin" / "java")
        return "java"

    def validate(self) -> None:
        """Check the directories the launch command depends on.

        Raises:
            ConfigurationError: If a required directory is missing
        """
        if not self.jboss_home.is_dir():
            raise ConfigurationError(f"JBOSS_HOME '{self.jboss_home}' is not a valid directory.")
        if not self.modules_path.is_dir():
            raise ConfigurationError(f"Modules path '{self.modules_path}' is not a valid directory.")
