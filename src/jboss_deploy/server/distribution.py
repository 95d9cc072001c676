"""Locate or unpack a server distribution."""
import logging
import shutil
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from ..exceptions import ArtifactResolutionError, ConfigurationError
from ..deployment.artifacts import ArtifactCoordinates, ArtifactResolver
from ..utils.connection import with_retry

logger = logging.getLogger(__name__)

DEFAULT_DISTRIBUTION = "org.jboss.as:jboss-as-dist"
DEFAULT_VERSION = "7.1.1.Final"
EXTRACT_DIR = "jboss-as-run"


def extract_zip(archive: Path, target: Path) -> None:
    """Extract an archive, refusing entries that escape the target."""
    target = target.resolve()
    with zipfile.ZipFile(archive) as zf:
        for member in zf.namelist():
            destination = (target / member).resolve()
            if destination != target and target not in destination.parents:
                raise ConfigurationError(f"Refusing to extract {member} outside {target}")
        zf.extractall(target)


@with_retry(max_attempts=3, min_wait=1, max_wait=10)
def download(
    url: str,
    target: Path,
    timeout: float = 300.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> Path:
    """Download url to target unless it is already there."""
    if target.exists():
        return target
    logger.info(f"Downloading server runtime from '{url}'. This may take a while")
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")
    with httpx.Client(timeout=timeout, transport=transport, follow_redirects=True) as http:
        with http.stream("GET", url) as response:
            if response.status_code >= 400:
                raise ArtifactResolutionError(
                    f"Cannot download server runtime from URL '{url}': HTTP {response.status_code}"
                )
            try:
                with open(partial, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
            except BaseException:
                partial.unlink(missing_ok=True)
                raise
    partial.replace(target)
    return target


def resolve_distribution(
    build_dir: Path,
    jboss_home: Optional[str] = None,
    version: Optional[str] = DEFAULT_VERSION,
    distribution: str = DEFAULT_DISTRIBUTION,
    download_url: Optional[str] = None,
    resolver: Optional[ArtifactResolver] = None,
) -> Path:
    """
    Find the server home directory.

    An explicit jboss_home is used as is. Otherwise the distribution zip is
    resolved (by coordinates, or from download_url), extracted under
    ``build_dir/jboss-as-run`` and the versioned directory inside returned.

    Args:
        build_dir: Directory to download and extract into
        jboss_home: Existing installation to use
        version: Distribution version, overrides any version in distribution
        distribution: ``group:artifact[:version]`` of the distribution zip
        download_url: Direct URL of the zip, used when no version is known
        resolver: Artifact resolver (defaults to the local Maven repository)

    Raises:
        ConfigurationError: If there is nothing to resolve
        ArtifactResolutionError: If the distribution cannot be fetched
    """
    if jboss_home:
        return Path(jboss_home)

    build_dir = Path(build_dir)
    parts = distribution.split(":")
    if len(parts) not in (2, 3):
        raise ConfigurationError(f"Invalid distribution '{distribution}', expected group:artifact[:version]")
    version = version or (parts[2] if len(parts) == 3 else None)

    if version:
        coordinates = ArtifactCoordinates(parts[0], parts[1], version, packaging="zip")
        logger.info(f"Resolving server distribution {coordinates}")
        archive = (resolver or ArtifactResolver()).resolve(coordinates)
    elif download_url:
        archive = download(download_url, build_dir / Path(urlparse(download_url).path).name)
    else:
        raise ConfigurationError(
            "Cannot download the server runtime. Please specify either a valid version or a download URL"
        )

    target = build_dir / EXTRACT_DIR
    if target.exists():
        shutil.rmtree(target)
    extract_zip(archive, target)

    home = target.absolute() / f"jboss-as-{version}" if version else _single_directory(target)
    logger.info(f"Extracted {archive.name} to {home}")
    return home


def _single_directory(target: Path) -> Path:
    entries = [p for p in target.iterdir() if p.is_dir()]
    if len(entries) != 1:
        raise ConfigurationError(f"Cannot determine the server home inside {target}")
    return entries[0].absolute()
