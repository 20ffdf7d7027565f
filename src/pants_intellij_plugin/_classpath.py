"""Pure Python classpath assembly (no Pants dependencies).

Derives the file sets a plugin build compiles, runs and tests against
from the synthetic descriptor, plus the Ivy artifact patterns needed to
resolve the descriptor itself.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pants_intellij_plugin._types import (
    SYNTHETIC_GROUP,
    SYNTHETIC_MODULE,
    Configuration,
    DependencyDescriptor,
)

# Appended to the test classpath so the IDE test framework can boot.
TEST_BOOT_JARS = ("lib/resources.jar", "lib/idea.jar")


def intellij_files(descriptor: DependencyDescriptor) -> tuple[Path, ...]:
    """Every file the descriptor declares, in descriptor order."""
    return tuple(a.file for a in descriptor.artifacts)


def run_classpath(descriptor: DependencyDescriptor) -> tuple[Path, ...]:
    """IDE library jars and the JDK tools jar.

    Bundled plugin jars and sources are compile-time only.
    """
    files = []
    for artifact in descriptor.artifacts:
        if artifact.configuration == Configuration.RUNTIME:
            files.append(artifact.file)
        elif artifact.configuration == Configuration.COMPILE and not artifact.relative_name.startswith(
            "plugins/"
        ):
            files.append(artifact.file)
    return tuple(files)


def build_test_classpath(descriptor: DependencyDescriptor, idea_directory: Path) -> tuple[Path, ...]:
    """Everything tests compile against, bundled plugins included, then the boot jars.

    Sources are never on a classpath.
    """
    files = [a.file for a in descriptor.artifacts if a.configuration != Configuration.SOURCES]
    for relative in TEST_BOOT_JARS:
        jar = idea_directory / relative
        if jar not in files:
            files.append(jar)
    return tuple(files)


def ivy_artifact_patterns(
    idea_directory: Path,
    version: str,
    consumer_name: str,
    *,
    tools_jar: Optional[Path] = None,
    sources_path: Optional[Path] = None,
) -> tuple[str, ...]:
    """Ivy repository artifact patterns that resolve the synthetic module.

    Example (no tools jar, no sources):
        ("/c/ideaIC-2023.1/com.jetbrains/ideaIC/2023.1/[artifact]-my-plugin.[ext]",
         "/c/ideaIC-2023.1/[artifact].[ext]")
    """
    idea = idea_directory.as_posix()
    patterns = [
        f"{idea}/{SYNTHETIC_GROUP}/{SYNTHETIC_MODULE}/{version}/[artifact]-{consumer_name}.[ext]",
        f"{idea}/[artifact].[ext]",
    ]
    if tools_jar is not None:
        patterns.append(f"{tools_jar.parent.as_posix()}/[artifact].[ext]")
    if sources_path is not None:
        patterns.append(f"{sources_path.parent.as_posix()}/[artifact]-{version}-[classifier].[ext]")
    return tuple(patterns)
