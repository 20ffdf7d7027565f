"""Pure Python acquisition pipeline (no Pants dependencies).

fetch -> ensure_extracted -> fetch_sources      (once per distribution)
generate -> classpaths                          (once per consumer)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from pants_intellij_plugin._classpath import (
    build_test_classpath,
    intellij_files,
    ivy_artifact_patterns,
    run_classpath,
)
from pants_intellij_plugin._extraction_cache import ensure_extracted
from pants_intellij_plugin._fetcher import Resolver, fetch, fetch_sources
from pants_intellij_plugin._ivy_descriptor import generate
from pants_intellij_plugin._types import (
    DistributionRequest,
    IntelliJDistribution,
    PreparedDistribution,
)

logger = logging.getLogger(__name__)


def skip_reason(*, configure_dependencies: bool, consumer_count: int) -> Optional[str]:
    """Return why an IntelliJ goal has nothing to do, or None if it should run."""
    if consumer_count == 0:
        return "No intellij_plugin targets found."
    if not configure_dependencies:
        return "[intellij].configure_dependencies is disabled; nothing to do."
    return None


def prepare_distribution(request: DistributionRequest, resolver: Resolver) -> PreparedDistribution:
    """Fetch and extract the distribution, and resolve its sources if requested.

    Raises:
        ConfigurationError: If the request is invalid.
        ResolutionError: If the archive cannot be resolved.
        ExtractionError: If the archive cannot be extracted.
    """
    request.validate()

    archive = fetch(request, resolver)
    cached = ensure_extracted(archive)
    sources = fetch_sources(request, resolver)

    return PreparedDistribution(
        version=request.version,
        archive_path=archive,
        idea_directory=cached.extracted_directory,
        sources_path=sources,
    )


def describe_distribution(
    prepared: PreparedDistribution,
    request: DistributionRequest,
    *,
    consumer_name: str,
    tools_jar: Optional[Path] = None,
) -> IntelliJDistribution:
    """Write the descriptor for one consumer and assemble its classpaths.

    Raises:
        DescriptorWriteError: If the descriptor cannot be written.
    """
    idea = prepared.idea_directory
    descriptor, descriptor_file = generate(
        idea,
        prepared.version,
        request.bundled_plugins,
        prepared.sources_path,
        consumer_name=consumer_name,
        tools_jar=tools_jar,
    )

    distribution = IntelliJDistribution(
        version=prepared.version,
        consumer_name=consumer_name,
        archive_path=prepared.archive_path,
        idea_directory=idea,
        descriptor_path=descriptor_file,
        sources_path=prepared.sources_path,
        intellij_files=intellij_files(descriptor),
        run_classpath=run_classpath(descriptor),
        test_classpath=build_test_classpath(descriptor, idea),
        artifact_patterns=ivy_artifact_patterns(
            idea,
            prepared.version,
            consumer_name,
            tools_jar=tools_jar,
            sources_path=prepared.sources_path,
        ),
    )
    logger.info(
        "IntelliJ IDEA %s ready for %s (%d files)",
        prepared.version,
        consumer_name,
        len(distribution.intellij_files),
    )
    return distribution


def acquire_distribution(
    request: DistributionRequest,
    *,
    consumer_name: str,
    resolver: Resolver,
    tools_jar: Optional[Path] = None,
) -> IntelliJDistribution:
    """Fetch, extract and describe the distribution for one consumer.

    Args:
        request: Which distribution to acquire.
        consumer_name: Name of the plugin build depending on the distribution;
            used in the descriptor file name.
        resolver: Repository resolver used for the archive and sources.
        tools_jar: JDK tools archive to declare under ``runtime``, if any.

    Raises:
        ConfigurationError: If the request is invalid.
        ResolutionError: If the archive cannot be resolved.
        ExtractionError: If the archive cannot be extracted.
        DescriptorWriteError: If the descriptor cannot be written.
    """
    prepared = prepare_distribution(request, resolver)
    return describe_distribution(prepared, request, consumer_name=consumer_name, tools_jar=tools_jar)


def acquire_distributions(
    request: DistributionRequest,
    consumer_names: Iterable[str],
    *,
    resolver: Resolver,
    tools_jar: Optional[Path] = None,
) -> tuple[IntelliJDistribution, ...]:
    """Acquire the distribution once and describe it for each consumer in turn.

    Duplicate consumer names are described once, in first-seen order.
    """
    names = list(dict.fromkeys(consumer_names))
    if not names:
        return ()
    prepared = prepare_distribution(request, resolver)
    return tuple(
        describe_distribution(prepared, request, consumer_name=name, tools_jar=tools_jar)
        for name in names
    )
