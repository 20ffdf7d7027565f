"""Pure Python distribution fetching (no Pants dependencies).

Resolves the IDE distribution archive, and optionally its sources jar,
from a JetBrains-style Maven repository:

    <intellij_repo>/<releases|snapshots>/
        com/jetbrains/intellij/idea/ideaIC/<version>/
            ideaIC-<version>.zip
            ideaIC-<version>-sources.jar

Downloaded files are kept in a local cache laid out as
``<cache_root>/<group>/<name>/<version>/<file>``.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.error import HTTPError, URLError

from platformdirs import user_cache_dir

from pants_intellij_plugin._exceptions import ResolutionError
from pants_intellij_plugin._extraction_cache import invalidate_extraction
from pants_intellij_plugin._types import (
    DISTRIBUTION_GROUP,
    DISTRIBUTION_NAME,
    PRE_RELEASE_TOKEN,
    DistributionRequest,
    ModuleCoordinate,
    ReleaseChannel,
)

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024

# Cached snapshot artifacts older than this are downloaded again.
DEFAULT_SNAPSHOT_TTL_SECONDS = 24 * 60 * 60

_ENV_CACHE_DIR = "PANTS_INTELLIJ_CACHE_DIR"


def default_cache_root() -> Path:
    """Return the local repository cache used when [intellij].cache_dir is unset.

    Override with env var:
      PANTS_INTELLIJ_CACHE_DIR=/path/to/cache

    Default:
      platformdirs.user_cache_dir("pants-intellij-plugin") / "repository"
    """
    override = os.environ.get(_ENV_CACHE_DIR)
    if override:
        return Path(override).expanduser().resolve() / "repository"
    return Path(user_cache_dir("pants-intellij-plugin")) / "repository"


def release_channel(version: str) -> ReleaseChannel:
    """Return the channel a version is published to.

    Example: release_channel("IC-2023.1") -> ReleaseChannel.RELEASES
             release_channel("IC-LATEST-EAP-SNAPSHOT") -> ReleaseChannel.SNAPSHOTS
    """
    if PRE_RELEASE_TOKEN in version:
        return ReleaseChannel.SNAPSHOTS
    return ReleaseChannel.RELEASES


def repository_url(base_url: str, version: str) -> str:
    """Join the repository base URL with the channel label for ``version``.

    Example: repository_url("https://example.com/repo", "IC-2023.1")
             -> "https://example.com/repo/releases"
    """
    return f"{base_url.rstrip('/')}/{release_channel(version).value}"


def distribution_coordinate(version: str) -> ModuleCoordinate:
    return ModuleCoordinate(
        group=DISTRIBUTION_GROUP,
        name=DISTRIBUTION_NAME,
        version=version,
        extension="zip",
    )


def sources_coordinate(version: str) -> ModuleCoordinate:
    return ModuleCoordinate(
        group=DISTRIBUTION_GROUP,
        name=DISTRIBUTION_NAME,
        version=version,
        extension="jar",
        classifier="sources",
    )


class Resolver(Protocol):
    def resolve(self, coordinate: ModuleCoordinate, repository_url: str) -> list[Path]:
        """Resolve a coordinate against a repository into local files.

        Returns an empty list when the repository does not have the artifact.
        Raises ResolutionError when the repository cannot be reached.
        """
        raise NotImplementedError


@dataclass(frozen=True)
class MavenRepositoryResolver:
    """Resolver for Maven-layout repositories over http(s):// or file://."""

    cache_root: Path
    timeout_seconds: float = 300.0
    snapshot_ttl_seconds: float = DEFAULT_SNAPSHOT_TTL_SECONDS

    def cached_path(self, coordinate: ModuleCoordinate) -> Path:
        return (
            self.cache_root
            / coordinate.group
            / coordinate.name
            / coordinate.version
            / coordinate.file_name
        )

    def resolve(self, coordinate: ModuleCoordinate, repository_url: str) -> list[Path]:
        dest = self.cached_path(coordinate)
        if self._is_fresh(dest, coordinate):
            logger.debug("Using cached %s at %s", coordinate.notation, dest)
            return [dest]

        url = f"{repository_url.rstrip('/')}/{coordinate.repository_path}"
        logger.info("Downloading %s from %s", coordinate.notation, url)
        if not self._download(url, dest, coordinate):
            logger.debug("%s not found at %s", coordinate.notation, url)
            return []
        return [dest]

    def _is_fresh(self, path: Path, coordinate: ModuleCoordinate) -> bool:
        if not path.is_file():
            return False
        if not coordinate.is_snapshot:
            return True
        age = time.time() - path.stat().st_mtime
        return age < self.snapshot_ttl_seconds

    def _download(self, url: str, dest: Path, coordinate: ModuleCoordinate) -> bool:
        """Stream ``url`` into ``dest``. Returns False if the artifact does not exist."""
        # A partially written file never carries the final name.
        partial = dest.with_name(dest.name + ".part")
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with urllib.request.urlopen(url, timeout=self.timeout_seconds) as response:
                with partial.open("wb") as out:
                    shutil.copyfileobj(response, out, length=_CHUNK_SIZE)
            if dest.exists():
                # The extraction next to the old archive no longer reflects it.
                invalidate_extraction(dest)
            os.replace(partial, dest)
        except HTTPError as e:
            _discard(partial)
            if e.code == 404:
                return False
            raise ResolutionError(coordinate.notation, f"HTTP {e.code} from {url}") from e
        except URLError as e:
            _discard(partial)
            if isinstance(e.reason, FileNotFoundError):
                return False
            raise ResolutionError(
                coordinate.notation, f"{url} is unreachable: {e.reason}"
            ) from e
        except (OSError, ValueError) as e:
            _discard(partial)
            raise ResolutionError(coordinate.notation, f"download of {url} failed: {e}") from e
        except BaseException:
            _discard(partial)
            raise
        return True


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def fetch(request: DistributionRequest, resolver: Resolver) -> Path:
    """Resolve the distribution archive for ``request.version``.

    Raises:
        ResolutionError: If the archive is missing, ambiguous, or the
            repository is unreachable.
    """
    coordinate = distribution_coordinate(request.version)
    url = repository_url(request.repository_base_url, request.version)
    logger.info("Resolving IntelliJ IDEA %s from %s", request.version, url)

    files = resolver.resolve(coordinate, url)
    if not files:
        raise ResolutionError(coordinate.notation, f"no artifact found in {url}")
    if len(files) > 1:
        names = ", ".join(sorted(str(f) for f in files))
        raise ResolutionError(
            coordinate.notation,
            f"expected a single archive but {len(files)} resolved: {names}",
        )

    logger.info("IDEA zip: %s", files[0])
    return files[0]


def fetch_sources(request: DistributionRequest, resolver: Resolver) -> Optional[Path]:
    """Resolve the sources jar, or None when disabled or unavailable.

    Sources are optional: a missing or unreachable sources jar only logs
    a warning.
    """
    if not request.download_sources:
        return None

    coordinate = sources_coordinate(request.version)
    url = repository_url(request.repository_base_url, request.version)
    try:
        files = resolver.resolve(coordinate, url)
    except ResolutionError as e:
        logger.warning("Skipping IDEA sources: %s", e)
        return None

    if not files:
        logger.warning("No sources published for %s in %s", coordinate.notation, url)
        return None
    return sorted(files)[0]
