"""Global IntelliJ platform configuration subsystem."""

from __future__ import annotations

from pathlib import Path

from pants.option.option_types import BoolOption, IntOption, StrListOption, StrOption
from pants.option.subsystem import Subsystem

from pants_intellij_plugin._fetcher import MavenRepositoryResolver, default_cache_root
from pants_intellij_plugin._types import (
    DEFAULT_IDEA_VERSION,
    DEFAULT_INTELLIJ_REPO,
    DistributionRequest,
)


class IntelliJSubsystem(Subsystem):
    """Global configuration for building IntelliJ platform plugins."""

    options_scope = "intellij"
    help = "Configuration for the IntelliJ platform plugin development backend."

    version = StrOption(
        default=DEFAULT_IDEA_VERSION,
        help="IntelliJ IDEA Community version to build against (e.g. 2023.1 or LATEST-EAP-SNAPSHOT).",
    )

    intellij_repo = StrOption(
        default=DEFAULT_INTELLIJ_REPO,
        help="Base URL of the IntelliJ repository. 'releases' or 'snapshots' is appended by version.",
    )

    download_sources = BoolOption(
        default=True,
        help="Download the IDEA sources jar and declare it in the 'sources' configuration.",
    )

    plugins = StrListOption(
        default=[],
        help="Bundled IDE plugins (directory names under plugins/, e.g. git4idea) to compile against.",
    )

    configure_dependencies = BoolOption(
        default=True,
        help="Acquire the distribution and generate the dependency descriptor. Disable to skip.",
    )

    cache_dir = StrOption(
        default="",
        help=(
            "Directory for downloaded and extracted distributions. "
            "Empty = PANTS_INTELLIJ_CACHE_DIR or the platform user cache directory."
        ),
    )

    download_timeout = IntOption(
        default=300,
        help="Network timeout in seconds for repository downloads.",
    )

    snapshot_ttl_hours = IntOption(
        default=24,
        help="Hours a downloaded snapshot distribution is reused before it is fetched again.",
    )

    @property
    def cache_root(self) -> Path:
        if self.cache_dir:
            return Path(self.cache_dir).expanduser()
        return default_cache_root()

    def to_request(self) -> DistributionRequest:
        return DistributionRequest(
            version=self.version,
            repository_base_url=self.intellij_repo,
            download_sources=self.download_sources,
            bundled_plugins=tuple(self.plugins),
            timeout_seconds=float(self.download_timeout),
        )

    def resolver(self) -> MavenRepositoryResolver:
        return MavenRepositoryResolver(
            cache_root=self.cache_root,
            timeout_seconds=float(self.download_timeout),
            snapshot_ttl_seconds=self.snapshot_ttl_hours * 60 * 60,
        )
