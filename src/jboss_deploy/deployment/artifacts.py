"""Resolve deployment archives from files or Maven-style coordinates."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import httpx

from ..exceptions import ArtifactResolutionError
from ..utils.connection import with_retry
from ..utils.logging_config import timed_section_sync

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_REPOSITORY = Path.home() / ".m2" / "repository"
DEFAULT_REMOTE_REPOSITORIES = ("https://repo.maven.apache.org/maven2",)


@dataclass(frozen=True)
class ArtifactCoordinates:
    """group:artifact:version[:packaging[:classifier]]"""
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str]
    packaging: str = "jar"
    classifier: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "ArtifactCoordinates":
        """Parse ``group:artifact:version[:packaging[:classifier]]``."""
        parts = text.split(":")
        if len(parts) < 3 or len(parts) > 5 or not all(parts):
            raise ArtifactResolutionError(
                f"Invalid artifact coordinates '{text}', expected "
                f"group:artifact:version[:packaging[:classifier]]"
            )
        return cls(
            group_id=parts[0],
            artifact_id=parts[1],
            version=parts[2],
            packaging=parts[3] if len(parts) > 3 else "jar",
            classifier=parts[4] if len(parts) > 4 else None,
        )

    def validate(self) -> None:
        if not self.artifact_id:
            raise ArtifactResolutionError("You must specify the artifactId")
        if not self.group_id:
            raise ArtifactResolutionError("You must specify the groupId")
        if not self.version:
            raise ArtifactResolutionError("You must specify the version")

    @property
    def file_name(self) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.artifact_id}-{self.version}{suffix}.{self.packaging}"

    @property
    def repository_path(self) -> str:
        """Relative path in a Maven repository layout."""
        group_path = self.group_id.replace(".", "/")
        return f"{group_path}/{self.artifact_id}/{self.version}/{self.file_name}"

    def __str__(self) -> str:
        text = f"{self.group_id}:{self.artifact_id}:{self.version}:{self.packaging}"
        return f"{text}:{self.classifier}" if self.classifier else text


class ArtifactResolver:
    """Finds artifacts in the local repository, downloading them when missing."""

    def __init__(
        self,
        local_repository: Optional[Path] = None,
        remote_repositories: Sequence[str] = DEFAULT_REMOTE_REPOSITORIES,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.local_repository = Path(local_repository or DEFAULT_LOCAL_REPOSITORY)
        self.remote_repositories = [url.rstrip("/") for url in remote_repositories]
        self.timeout = timeout
        self._transport = transport

    def resolve_file(self, path: str | Path) -> Path:
        """Use a file given directly; it must exist."""
        path = Path(path)
        if not path.exists():
            raise ArtifactResolutionError(f"File does not exist: {path.name}")
        return path

    def resolve(self, coordinates: ArtifactCoordinates) -> Path:
        """
        Resolve coordinates to a local file.

        Raises:
            ArtifactResolutionError: If coordinates are incomplete or the
                artifact is in none of the repositories
        """
        coordinates.validate()
        local = self.local_repository / coordinates.repository_path
        if local.exists():
            logger.debug(f"Found {coordinates} in local repository: {local}")
            return local

        if not self.remote_repositories:
            raise ArtifactResolutionError(f"Could not resolve artifact {coordinates}")

        with httpx.Client(
            timeout=self.timeout, transport=self._transport, follow_redirects=True
        ) as http:
            for repository in self.remote_repositories:
                url = f"{repository}/{coordinates.repository_path}"
                logger.info(f"Resolving artifact {coordinates} from {repository}")
                with timed_section_sync("download", repository, artifact=str(coordinates)):
                    found = self._download(http, url, local)
                if found:
                    return local

        raise ArtifactResolutionError(
            f"Could not resolve artifact {coordinates} from {', '.join(self.remote_repositories)}"
        )

    @with_retry(max_attempts=3, min_wait=1, max_wait=10)
    def _download(self, http: httpx.Client, url: str, target: Path) -> bool:
        """Download url into target; False when the repository does not have it."""
        partial = target.with_name(target.name + ".part")
        with http.stream("GET", url) as response:
            if response.status_code == 404:
                logger.debug(f"Not found: {url}")
                return False
            if response.status_code >= 400:
                raise ArtifactResolutionError(
                    f"Failed to download {url}: HTTP {response.status_code}"
                )
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                with open(partial, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
            except BaseException:
                partial.unlink(missing_ok=True)
                raise
        partial.replace(target)
        logger.info(f"Downloaded {url} to {target}")
        return True
