"""Connection to a management endpoint.

A ServerConnection owns at most one live client. The client is created on
first use, classified once as standalone or domain, and reused until the
connection is closed.
"""
import logging
import socket
import threading
from enum import Enum
from typing import Callable, Optional

import httpx

from ..exceptions import ConfigurationError, InvalidHost
from ..management.address import parse_address
from ..management.operations import (
    LAUNCH_TYPE,
    create_read_attribute_operation,
    read_result_as_string,
    raise_on_failure,
)
from ..resources.existence import resource_exists
from ..utils.connection import with_retry
from .base import CredentialResolver, DomainClient, ManagementClient

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    UNRESOLVED = "unresolved"
    RESOLVING_HOST = "resolving_host"
    CONNECTED = "connected"
    CLOSED = "closed"


ClientFactory = Callable[..., ManagementClient]


class ServerConnection:
    """Lazily connected handle on one management endpoint.

    Every read or write of the cached client and resolved host address goes
    through a single re-entrant lock.

    Example:
        with ServerConnection("localhost", 9990, resolver) as connection:
            client = connection.get_client()
            client.execute(op)
    """

    def __init__(
        self,
        hostname: str = "localhost",
        port: int = 9990,
        credential_resolver: Optional[CredentialResolver] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
        client_factory: Optional[ClientFactory] = None,
        resolve_host: Callable[[str], str] = socket.gethostbyname,
    ):
        self.hostname = hostname
        self.port = port
        self.timeout = timeout
        self._credential_resolver = credential_resolver
        self._transport = transport
        self._client_factory = client_factory or ManagementClient
        self._resolve_host = resolve_host

        self._lock = threading.RLock()
        self._host_address: Optional[str] = None
        self._client: Optional[ManagementClient] = None
        self._state = ConnectionState.UNRESOLVED

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    def get_host_address(self) -> str:
        """Resolve the hostname once.

        Raises:
            InvalidHost: If the hostname cannot be resolved
        """
        with self._lock:
            if self._host_address is None:
                previous = self._state
                self._state = ConnectionState.RESOLVING_HOST
                try:
                    self._host_address = self._resolve_host(self.hostname)
                except (socket.gaierror, UnicodeError) as e:
                    raise InvalidHost(self.hostname) from e
                finally:
                    self._state = previous
                logger.debug(f"Resolved {self.hostname} to {self._host_address}")
            return self._host_address

    def get_client(self) -> ManagementClient:
        """Return the cached client, creating and classifying it if needed."""
        with self._lock:
            if self._client is not None:
                return self._client

            host = self.get_host_address()
            client = self._client_factory(
                host,
                self.port,
                credential_resolver=self._credential_resolver,
                timeout=self.timeout,
                transport=self._transport,
            )
            try:
                launch_type = self._read_launch_type(client)
            except BaseException:
                client.close()
                raise

            if launch_type == "DOMAIN":
                client = DomainClient.from_client(client)
            logger.info(f"Connected to {launch_type.lower()} server at {client.endpoint}")

            self._client = client
            self._state = ConnectionState.CONNECTED
            return client

    @with_retry(max_attempts=3, min_wait=1, max_wait=5)
    def _read_launch_type(self, client: ManagementClient) -> str:
        result = client.execute(create_read_attribute_operation(LAUNCH_TYPE))
        return read_result_as_string(raise_on_failure(result))

    def is_domain_server(self) -> bool:
        return self.get_client().is_domain

    def close(self) -> None:
        """Close and discard the cached client. Safe to call repeatedly."""
        with self._lock:
            if self._client is not None:
                try:
                    self._client.close()
                finally:
                    self._client = None
                    self._state = ConnectionState.CLOSED
                logger.debug(f"Closed connection to {self.hostname}:{self.port}")

    def check_preconditions(
        self,
        if_exists: Optional[str] = None,
        if_not_exists: Optional[str] = None,
    ) -> bool:
        """Decide whether a goal should run.

        Args:
            if_exists: Run only if the resource at this address exists
            if_not_exists: Run only if the resource at this address is absent

        Returns:
            True if the goal should proceed

        Raises:
            ConfigurationError: If both conditions are set
        """
        if if_exists and if_not_exists:
            raise ConfigurationError("Cannot define both if-exists and if-not-exists")
        if not if_exists and not if_not_exists:
            return True

        client = self.get_client()
        if client.is_domain:
            logger.warning("Preconditions are not supported on domain servers, proceeding")
            return True

        if if_exists:
            found = resource_exists(parse_address(None, if_exists), client)
            if not found:
                logger.info(f"Resource {if_exists} does not exist, skipping")
            return bool(found)

        found = resource_exists(parse_address(None, if_not_exists), client)
        if found:
            logger.info(f"Resource {if_not_exists} exists, skipping")
        return not found

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"ServerConnection({self.hostname}:{self.port}, state={self.state.value})"
