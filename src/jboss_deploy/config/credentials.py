"""Credential lookup for the management endpoint.

Lookup order:
1. Username/password given explicitly (CLI options or environment)
2. The ``servers`` entry for the server id in the settings file
3. Interactive prompt

Settings file format::

    servers:
      prod-eap:
        username: admin
        password: secret
"""
import getpass
import logging
from pathlib import Path
from typing import Callable, Optional

import yaml

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Credentials = tuple[str, str]
CredentialResolver = Callable[[], Credentials]


def find_settings_file() -> Optional[str]:
    """Find the settings file, if any."""
    search_paths = [
        Path.cwd() / "jboss-deploy.yaml",
        Path.home() / ".config" / "jboss-deploy" / "settings.yaml",
        Path.home() / ".jboss-deploy" / "settings.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return str(path)
    return None


class SettingsCredentialStore:
    """Server credentials loaded from a YAML settings file."""

    def __init__(self, settings_path: Optional[str] = None):
        self.settings_path = settings_path or find_settings_file()
        self._servers: dict = {}
        if self.settings_path:
            self._load()

    def _load(self) -> None:
        path = Path(self.settings_path)
        if not path.exists():
            raise ConfigurationError(f"Settings file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        servers = data.get("servers", {})
        if not isinstance(servers, dict):
            raise ConfigurationError(f"'servers' in {path} must be a mapping of server ids")
        self._servers = servers
        logger.debug(f"Loaded {len(servers)} server entries from {path}")

    def get(self, server_id: str) -> Optional[tuple[Optional[str], Optional[str]]]:
        """Return (username, password) for a server id, or None if unknown."""
        entry = self._servers.get(server_id)
        if entry is None:
            return None
        return entry.get("username"), entry.get("password")


def prompt_credentials(realm: str = "ManagementRealm") -> Credentials:
    """Ask the user for credentials on the terminal."""
    print(f"Authenticating against security realm: {realm}")
    username = input("Username: ")
    password = getpass.getpass("Password: ")
    return username, password


def create_credential_resolver(
    username: Optional[str] = None,
    password: Optional[str] = None,
    server_id: Optional[str] = None,
    settings_file: Optional[str] = None,
    prompt: Callable[[], Credentials] = prompt_credentials,
) -> CredentialResolver:
    """Build the callback invoked when the server asks for authentication.

    The result is memoized so the user is prompted at most once.
    """
    cache: list[Credentials] = []

    def resolve() -> Credentials:
        if cache:
            return cache[0]

        user, pwd = username, password
        if (user is None or pwd is None) and server_id:
            stored = SettingsCredentialStore(settings_file).get(server_id)
            if stored is None:
                logger.warning(f"No credentials for server id '{server_id}' in settings file")
            else:
                user = user if user is not None else stored[0]
                pwd = pwd if pwd is not None else stored[1]

        if user is None or pwd is None:
            prompted_user, prompted_pwd = prompt()
            user = user if user is not None else prompted_user
            pwd = pwd if pwd is not None else prompted_pwd

        cache.append((user, pwd))
        return user, pwd

    return resolve
