"""HTTP management API client.

Operations are POSTed as JSON to ``http://<host>:<port>/management``.
Authentication is HTTP digest; credentials are only requested from the
resolver callback once the server answers 401.
"""
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from ..exceptions import ManagementConnectionError, OperationFailed
from ..management.operations import (
    FAILURE_DESCRIPTION,
    OP,
    OUTCOME,
    RESULT,
    create_read_children_names_operation,
    raise_on_failure,
)
from ..utils.logging_config import timed

logger = logging.getLogger(__name__)

CredentialResolver = Callable[[], tuple[str, str]]


class CallbackDigestAuth(httpx.Auth):
    """Digest auth whose credentials come from a callback on the first 401."""

    requires_request_body = True

    def __init__(self, resolver: Optional[CredentialResolver]):
        self._resolver = resolver
        self._digest: Optional[httpx.DigestAuth] = None

    def auth_flow(self, request: httpx.Request):
        if self._digest is not None:
            yield from self._digest.auth_flow(request)
            return

        response = yield request
        if response.status_code != 401 or self._resolver is None:
            return

        username, password = self._resolver()
        self._digest = httpx.DigestAuth(username, password)
        yield from self._digest.auth_flow(request)


class ManagementClient:
    """Client for a standalone server's management endpoint."""

    launch_type = "STANDALONE"

    def __init__(
        self,
        host: str,
        port: int,
        credential_resolver: Optional[CredentialResolver] = None,
        timeout: float = 60.0,
        scheme: str = "http",
        transport: Optional[httpx.BaseTransport] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.host = host
        self.port = port
        self.endpoint = f"{host}:{port}"
        self.base_url = f"{scheme}://{host}:{port}/management"
        self._http = http or httpx.Client(
            auth=CallbackDigestAuth(credential_resolver),
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._closed = False

    @property
    def is_domain(self) -> bool:
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    @timed("execute")
    def execute(self, op: dict[str, Any]) -> dict[str, Any]:
        """Execute an operation and return the raw result.

        Server-side failures are returned (outcome ``failed``), not raised.

        Raises:
            ManagementConnectionError: If the endpoint cannot be reached
            OperationFailed: If the response is not a management result
        """
        if self._closed:
            raise ManagementConnectionError(f"Client for {self.endpoint} is closed")

        logger.debug(f"Executing {op.get(OP)} on {self.endpoint}: {op}")
        try:
            response = self._http.post(self.base_url, json=op)
        except httpx.TransportError as e:
            raise ManagementConnectionError(
                f"Could not execute operation '{op.get(OP)}' on {self.endpoint}: {e}"
            ) from e
        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 401:
            raise OperationFailed(f"Authentication failed for {self.endpoint}")
        try:
            result = response.json()
        except ValueError:
            raise OperationFailed(
                f"Unexpected response from {self.endpoint} (HTTP {response.status_code}): "
                f"{response.text[:200]}"
            )
        if not isinstance(result, dict) or OUTCOME not in result:
            raise OperationFailed(
                f"Unexpected response from {self.endpoint} (HTTP {response.status_code}): {result}"
            )
        if result[OUTCOME] != "success":
            logger.debug(f"Operation failed on {self.endpoint}: {result.get(FAILURE_DESCRIPTION)}")
        return result

    @timed("upload")
    def upload_content(self, path: Path) -> str:
        """Upload deployment content and return its content hash."""
        path = Path(path)
        data = path.read_bytes()
        logger.info(f"Uploading {path.name} ({len(data)} bytes) to {self.endpoint}")
        try:
            response = self._http.post(
                f"{self.base_url}/add-content",
                files={"file": (path.name, data, "application/octet-stream")},
            )
        except httpx.TransportError as e:
            raise ManagementConnectionError(
                f"Could not upload {path.name} to {self.endpoint}: {e}"
            ) from e

        result = raise_on_failure(self._parse_response(response))
        content_hash = result[RESULT]["BYTES_VALUE"]
        logger.debug(f"Uploaded {path.name} as {content_hash}")
        return content_hash

    def close(self) -> None:
        if not self._closed:
            self._http.close()
            self._closed = True
            logger.debug(f"Closed client for {self.endpoint}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.endpoint})"


class DomainClient(ManagementClient):
    """Client for a domain controller (multi-profile, multi-server)."""

    launch_type = "DOMAIN"

    @classmethod
    def from_client(cls, client: ManagementClient) -> "DomainClient":
        """Upgrade a standalone client, reusing its HTTP session."""
        host, port = client.host, client.port
        domain = cls(host, port, http=client._http)
        domain.base_url = client.base_url
        return domain

    @property
    def is_domain(self) -> bool:
        return True

    def read_profile_names(self) -> list[str]:
        """List the profiles defined on the domain controller."""
        result = raise_on_failure(self.execute(create_read_children_names_operation("profile")))
        return list(result.get(RESULT) or [])
