"""Connection settings with environment fallbacks.

Environment Variables:
    JBOSS_DEPLOY_HOSTNAME: Management host (default: localhost)
    JBOSS_DEPLOY_PORT: Management HTTP port (default: 9990)
    JBOSS_DEPLOY_USERNAME / JBOSS_DEPLOY_PASSWORD: Management credentials
    JBOSS_DEPLOY_TIMEOUT: Request timeout in seconds (default: 60)
"""
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_HOSTNAME = "localhost"
DEFAULT_PORT = 9990
DEFAULT_TIMEOUT = 60.0


@dataclass
class ConnectionSettings:
    """Where and how to reach the management endpoint."""
    hostname: str = DEFAULT_HOSTNAME
    port: int = DEFAULT_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    # Server id used to look up credentials in the settings file
    server_id: Optional[str] = None
    settings_file: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    # Goal preconditions (mutually exclusive)
    if_exists: Optional[str] = None
    if_not_exists: Optional[str] = None

    @classmethod
    def from_env(cls, **overrides) -> "ConnectionSettings":
        """Build settings from the environment, then apply non-None overrides."""
        settings = cls(
            hostname=os.environ.get("JBOSS_DEPLOY_HOSTNAME", DEFAULT_HOSTNAME),
            port=int(os.environ.get("JBOSS_DEPLOY_PORT", str(DEFAULT_PORT))),
            username=os.environ.get("JBOSS_DEPLOY_USERNAME"),
            password=os.environ.get("JBOSS_DEPLOY_PASSWORD"),
            timeout=float(os.environ.get("JBOSS_DEPLOY_TIMEOUT", str(DEFAULT_TIMEOUT))),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(settings, key, value)
        return settings
