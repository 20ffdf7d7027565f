"""Tests for the acquisition pipeline against a file:// repository (no Pants engine)."""

from __future__ import annotations

import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path

import pytest
import yaml

from pants_intellij_plugin._exceptions import ConfigurationError, ResolutionError
from pants_intellij_plugin._extraction_cache import MARKER_FILE_NAME
from pants_intellij_plugin._fetcher import (
    MavenRepositoryResolver,
    distribution_coordinate,
    sources_coordinate,
)
from pants_intellij_plugin._pipeline import (
    acquire_distribution,
    acquire_distributions,
    prepare_distribution,
    skip_reason,
)
from pants_intellij_plugin._types import DistributionRequest


def _publish_distribution(
    repo: Path, channel: str, version: str, *, with_sources: bool = True, build: str = ""
) -> None:
    archive = repo / channel / distribution_coordinate(version).repository_path
    archive.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("build.txt", build or f"IC-{version}")
        zf.writestr("lib/idea.jar", "idea")
        zf.writestr("lib/util.jar", "util")
        zf.writestr("plugins/git4idea/lib/git4idea.jar", "git")
        zf.writestr("plugins/maven/lib/maven.jar", "maven")
    if with_sources:
        sources = repo / channel / sources_coordinate(version).repository_path
        sources.write_bytes(b"sources")


def _request(repo: Path, version: str = "2023.1", **kwargs) -> DistributionRequest:
    return DistributionRequest(version=version, repository_base_url=repo.as_uri(), **kwargs)


class _CountingResolver:
    """Delegates to a real resolver and counts resolutions per file name."""

    def __init__(self, resolver: MavenRepositoryResolver):
        self.resolver = resolver
        self.counts: dict[str, int] = {}

    def resolve(self, coordinate, repository_url):
        self.counts[coordinate.file_name] = self.counts.get(coordinate.file_name, 0) + 1
        return self.resolver.resolve(coordinate, repository_url)


class TestAcquireDistribution:
    def test_full_pipeline(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1")
        resolver = MavenRepositoryResolver(cache_root=tmp_path / "cache")

        distribution = acquire_distribution(
            _request(repo, bundled_plugins=("git4idea",)),
            consumer_name="my-plugin",
            resolver=resolver,
        )

        idea = distribution.idea_directory
        assert distribution.archive_path.name == "ideaIC-2023.1.zip"
        assert idea == distribution.archive_path.with_suffix("")
        assert (idea / MARKER_FILE_NAME).is_file()
        assert distribution.sources_path is not None
        assert distribution.sources_path.name == "ideaIC-2023.1-sources.jar"
        assert distribution.descriptor_path == (
            idea / "com.jetbrains" / "ideaIC" / "2023.1" / "ivy-my-plugin.xml"
        )

        root = ET.parse(distribution.descriptor_path).getroot()
        names = [(a.get("name"), a.get("conf")) for a in root.findall("publications/artifact")]
        assert names == [
            ("lib/idea", "compile"),
            ("lib/util", "compile"),
            ("plugins/git4idea/lib/git4idea", "compile"),
            ("ideaIC", "sources"),
        ]

        assert distribution.run_classpath == (idea / "lib" / "idea.jar", idea / "lib" / "util.jar")
        assert idea / "lib" / "resources.jar" in distribution.test_classpath
        assert idea / "plugins" / "git4idea" / "lib" / "git4idea.jar" in distribution.test_classpath
        assert len(distribution.intellij_files) == 4
        assert distribution.artifact_patterns[0].endswith("[artifact]-my-plugin.[ext]")

    def test_tools_jar_declared(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1", with_sources=False)
        tools = tmp_path / "jdk" / "lib" / "tools.jar"
        tools.parent.mkdir(parents=True)
        tools.write_bytes(b"")

        distribution = acquire_distribution(
            _request(repo),
            consumer_name="p",
            resolver=MavenRepositoryResolver(cache_root=tmp_path / "cache"),
            tools_jar=tools,
        )

        assert distribution.run_classpath[-1] == tools
        assert distribution.sources_path is None

    def test_snapshot_channel(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "snapshots", "LATEST-EAP-SNAPSHOT")

        distribution = acquire_distribution(
            _request(repo, version="LATEST-EAP-SNAPSHOT", download_sources=False),
            consumer_name="p",
            resolver=MavenRepositoryResolver(cache_root=tmp_path / "cache"),
        )

        assert distribution.version == "LATEST-EAP-SNAPSHOT"
        assert distribution.idea_directory.name == "ideaIC-LATEST-EAP-SNAPSHOT"

    def test_second_run_reuses_everything(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1")
        resolver = MavenRepositoryResolver(cache_root=tmp_path / "cache")

        first = acquire_distribution(_request(repo), consumer_name="p", resolver=resolver)
        descriptor_bytes = first.descriptor_path.read_bytes()
        # Remove the repository: a second run must be served from the cache.
        archive = repo / "releases" / distribution_coordinate("2023.1").repository_path
        archive.unlink()

        second = acquire_distribution(_request(repo), consumer_name="p", resolver=resolver)

        assert second == first
        assert second.descriptor_path.read_bytes() == descriptor_bytes

    def test_missing_distribution(self, tmp_path: Path):
        repo = tmp_path / "repo"
        (repo / "releases").mkdir(parents=True)

        with pytest.raises(ResolutionError):
            acquire_distribution(
                _request(repo),
                consumer_name="p",
                resolver=MavenRepositoryResolver(cache_root=tmp_path / "cache"),
            )

    def test_invalid_request_rejected_before_fetching(self, tmp_path: Path):
        class _Unused:
            def resolve(self, coordinate, repository_url):
                raise AssertionError("resolver must not be called")

        with pytest.raises(ConfigurationError):
            acquire_distribution(
                DistributionRequest(version=""),
                consumer_name="p",
                resolver=_Unused(),
            )

    def test_yaml_summary(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1")

        distribution = acquire_distribution(
            _request(repo),
            consumer_name="my-plugin",
            resolver=MavenRepositoryResolver(cache_root=tmp_path / "cache"),
        )
        summary = yaml.safe_load(distribution.to_yaml())

        assert summary["module"] == "com.jetbrains:ideaIC:2023.1"
        assert summary["descriptor"] == str(distribution.descriptor_path)
        assert summary["sources"] == str(distribution.sources_path)

    def test_refreshed_snapshot_is_extracted_again(self, tmp_path: Path):
        repo = tmp_path / "repo"
        version = "LATEST-EAP-SNAPSHOT"
        _publish_distribution(repo, "snapshots", version, with_sources=False, build="IC-232.1")
        resolver = MavenRepositoryResolver(cache_root=tmp_path / "cache", snapshot_ttl_seconds=0)
        request = _request(repo, version=version, download_sources=False)

        first = acquire_distribution(request, consumer_name="p", resolver=resolver)
        assert (first.idea_directory / "build.txt").read_text() == "IC-232.1"

        _publish_distribution(repo, "snapshots", version, with_sources=False, build="IC-232.2")
        second = acquire_distribution(request, consumer_name="p", resolver=resolver)

        assert second.idea_directory == first.idea_directory
        assert (second.idea_directory / "build.txt").read_text() == "IC-232.2"
        assert (second.idea_directory / MARKER_FILE_NAME).is_file()


# =============================================================================
# Several consumers
# =============================================================================


class TestAcquireDistributions:
    def test_distribution_acquired_once_for_all_consumers(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1")
        resolver = _CountingResolver(MavenRepositoryResolver(cache_root=tmp_path / "cache"))

        distributions = acquire_distributions(
            _request(repo), ["plugin-a", "plugin-b"], resolver=resolver
        )

        assert resolver.counts == {"ideaIC-2023.1.zip": 1, "ideaIC-2023.1-sources.jar": 1}
        assert [d.consumer_name for d in distributions] == ["plugin-a", "plugin-b"]
        assert distributions[0].idea_directory == distributions[1].idea_directory
        assert distributions[0].descriptor_path.name == "ivy-plugin-a.xml"
        assert distributions[1].descriptor_path.name == "ivy-plugin-b.xml"
        assert all(d.descriptor_path.is_file() for d in distributions)

    def test_duplicate_consumers_described_once(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1", with_sources=False)

        distributions = acquire_distributions(
            _request(repo, download_sources=False),
            ["p", "q", "p"],
            resolver=MavenRepositoryResolver(cache_root=tmp_path / "cache"),
        )

        assert [d.consumer_name for d in distributions] == ["p", "q"]

    def test_no_consumers_fetches_nothing(self):
        class _Unused:
            def resolve(self, coordinate, repository_url):
                raise AssertionError("resolver must not be called")

        assert acquire_distributions(DistributionRequest(version="2023.1"), [], resolver=_Unused()) == ()


class TestPrepareDistribution:
    def test_shared_state(self, tmp_path: Path):
        repo = tmp_path / "repo"
        _publish_distribution(repo, "releases", "2023.1")

        prepared = prepare_distribution(
            _request(repo), MavenRepositoryResolver(cache_root=tmp_path / "cache")
        )

        assert prepared.version == "2023.1"
        assert prepared.idea_directory == prepared.archive_path.with_suffix("")
        assert (prepared.idea_directory / MARKER_FILE_NAME).is_file()
        assert prepared.sources_path is not None
        # Descriptors are written per consumer, not during preparation.
        assert not (prepared.idea_directory / "com.jetbrains").exists()


class TestSkipReason:
    def test_runs_when_configured(self):
        assert skip_reason(configure_dependencies=True, consumer_count=2) is None

    def test_no_targets(self):
        assert skip_reason(configure_dependencies=True, consumer_count=0) == (
            "No intellij_plugin targets found."
        )

    def test_disabled(self):
        message = skip_reason(configure_dependencies=False, consumer_count=1)
        assert message is not None
        assert "configure_dependencies is disabled" in message

    def test_no_targets_reported_before_disabled(self):
        message = skip_reason(configure_dependencies=False, consumer_count=0)
        assert message == "No intellij_plugin targets found."
