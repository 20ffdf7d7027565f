"""Domain types for IntelliJ distribution acquisition."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml

from pants_intellij_plugin._exceptions import ConfigurationError, DescriptorError

# Module identity of the IDE distribution in the JetBrains repository.
DISTRIBUTION_GROUP = "com.jetbrains.intellij.idea"
DISTRIBUTION_NAME = "ideaIC"

# Module identity of the synthetic module described by the generated descriptor.
SYNTHETIC_GROUP = "com.jetbrains"
SYNTHETIC_MODULE = "ideaIC"

DEFAULT_IDEA_VERSION = "LATEST-EAP-SNAPSHOT"
DEFAULT_INTELLIJ_REPO = "https://www.jetbrains.com/intellij-repository"

# A version containing this token is published to the snapshots channel.
PRE_RELEASE_TOKEN = "SNAPSHOT"

_SUPPORTED_URL_SCHEMES = ("http", "https", "file")


class ReleaseChannel(str, Enum):
    """Repository channel a distribution version is published to."""

    RELEASES = "releases"
    SNAPSHOTS = "snapshots"


class Configuration(str, Enum):
    """Named artifact groupings of the synthetic descriptor."""

    COMPILE = "compile"
    SOURCES = "sources"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class ModuleCoordinate:
    """A Maven module coordinate, optionally narrowed to one classified artifact."""

    group: str
    name: str
    version: str
    extension: str = "jar"
    classifier: Optional[str] = None

    @property
    def notation(self) -> str:
        classifier = f":{self.classifier}" if self.classifier else ""
        return f"{self.group}:{self.name}:{self.version}{classifier}@{self.extension}"

    @property
    def file_name(self) -> str:
        classifier = f"-{self.classifier}" if self.classifier else ""
        return f"{self.name}-{self.version}{classifier}.{self.extension}"

    @property
    def repository_path(self) -> str:
        """Path of the artifact relative to a Maven repository root."""
        group_path = self.group.replace(".", "/")
        return f"{group_path}/{self.name}/{self.version}/{self.file_name}"

    @property
    def is_snapshot(self) -> bool:
        return PRE_RELEASE_TOKEN in self.version


@dataclass(frozen=True)
class DistributionRequest:
    """Immutable description of which distribution to acquire and how."""

    version: str = DEFAULT_IDEA_VERSION
    repository_base_url: str = DEFAULT_INTELLIJ_REPO
    download_sources: bool = True
    bundled_plugins: tuple[str, ...] = ()
    timeout_seconds: float = 300.0

    def validate(self) -> None:
        if not self.version or not self.version.strip():
            raise ConfigurationError("version must be non-empty", field="version")

        parsed = urlparse(self.repository_base_url)
        if parsed.scheme not in _SUPPORTED_URL_SCHEMES:
            raise ConfigurationError(
                f"Unsupported repository URL {self.repository_base_url!r}. "
                f"Expected one of: {', '.join(_SUPPORTED_URL_SCHEMES)}",
                field="intellij_repo",
            )
        if parsed.scheme != "file" and not parsed.netloc:
            raise ConfigurationError(
                f"Repository URL has no host: {self.repository_base_url!r}",
                field="intellij_repo",
            )
        if parsed.scheme == "file" and not parsed.path:
            raise ConfigurationError(
                f"Repository URL has no path: {self.repository_base_url!r}",
                field="intellij_repo",
            )

        for plugin in self.bundled_plugins:
            if not plugin or "/" in plugin or plugin in (".", ".."):
                raise ConfigurationError(
                    f"Invalid bundled plugin name: {plugin!r}", field="plugins"
                )

        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout must be positive, got {self.timeout_seconds}",
                field="download_timeout",
            )


@dataclass(frozen=True)
class CachedDistribution:
    """An archive and the directory it is (or was being) extracted into."""

    archive_path: Path
    extracted_directory: Path
    marker_present: bool


@dataclass(frozen=True)
class PreparedDistribution:
    """A fetched and extracted distribution, shared by every consumer."""

    version: str
    archive_path: Path
    idea_directory: Path
    sources_path: Optional[Path] = None



@dataclass(frozen=True)
class ArtifactEntry:
    """One file declared by the synthetic descriptor."""

    file: Path
    configuration: Configuration
    base_directory: Path
    name: Optional[str] = None  # Overrides the name derived from the relative path
    classifier: Optional[str] = None
    artifact_type: Optional[str] = None  # Defaults to the extension

    @property
    def extension(self) -> str:
        return self.file.suffix.lstrip(".")

    @property
    def relative_name(self) -> str:
        """Artifact name: path relative to base_directory, extension stripped."""
        if self.name is not None:
            return self.name
        relative = self.file.relative_to(self.base_directory).as_posix()
        suffix = self.file.suffix
        return relative[: -len(suffix)] if suffix else relative

    @property
    def type(self) -> str:
        return self.artifact_type or self.extension


@dataclass
class DependencyDescriptor:
    """An Ivy module descriptor under construction.

    Artifacts keep insertion order; callers add them in a deterministic
    order so the rendered document is stable.
    """

    module_group: str
    module_name: str
    module_version: str
    configurations: list[str] = field(default_factory=list)
    artifacts: list[ArtifactEntry] = field(default_factory=list)

    def add_configuration(self, configuration: Configuration) -> None:
        if configuration.value not in self.configurations:
            self.configurations.append(configuration.value)

    def add_artifact(self, artifact: ArtifactEntry) -> None:
        if artifact.configuration.value not in self.configurations:
            raise DescriptorError(
                f"Artifact {artifact.file} uses undeclared configuration "
                f"{artifact.configuration.value!r}"
            )
        self.artifacts.append(artifact)

    def artifacts_for(self, configuration: Configuration) -> list[ArtifactEntry]:
        return [a for a in self.artifacts if a.configuration == configuration]

    @property
    def module_id(self) -> str:
        return f"{self.module_group}:{self.module_name}:{self.module_version}"


@dataclass(frozen=True)
class IntelliJDistribution:
    """Everything a build needs to compile, run and test against the IDE."""

    version: str
    consumer_name: str
    archive_path: Path
    idea_directory: Path
    descriptor_path: Path
    sources_path: Optional[Path] = None
    intellij_files: tuple[Path, ...] = ()
    run_classpath: tuple[Path, ...] = ()
    test_classpath: tuple[Path, ...] = ()
    artifact_patterns: tuple[str, ...] = ()

    @property
    def module_id(self) -> str:
        return f"{SYNTHETIC_GROUP}:{SYNTHETIC_MODULE}:{self.version}"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "version": self.version,
            "module": self.module_id,
            "consumer": self.consumer_name,
            "archive": str(self.archive_path),
            "idea-directory": str(self.idea_directory),
            "descriptor": str(self.descriptor_path),
        }
        if self.sources_path is not None:
            result["sources"] = str(self.sources_path)
        result["artifact-patterns"] = list(self.artifact_patterns)
        result["intellij-files"] = [str(p) for p in self.intellij_files]
        result["run-classpath"] = [str(p) for p in self.run_classpath]
        result["test-classpath"] = [str(p) for p in self.test_classpath]
        return result

    def to_yaml(self) -> str:
        """Serialize to YAML string."""
        return yaml.dump(
            self.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
