"""Pure Python synthetic Ivy descriptor generation (no Pants dependencies).

Describes an extracted IDE distribution as an ordinary Ivy module so a
JVM resolver can depend on it:

    <idea-directory>/
        com.jetbrains/ideaIC/<version>/ivy-<consumer>.xml
        lib/*.jar                      -> conf "compile"
        plugins/<bundled>/lib/*.jar    -> conf "compile" (requested plugins only)
    $JAVA_HOME/lib/tools.jar           -> conf "runtime" (when present)
    ideaIC-<version>-sources.jar       -> conf "sources", classifier "sources"

Artifacts are added in lexicographic order of their relative paths and the
document carries no timestamps, so unchanged inputs render identical bytes.
"""

from __future__ import annotations

import contextlib
import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Optional

from pants_intellij_plugin._exceptions import DescriptorWriteError
from pants_intellij_plugin._types import (
    SYNTHETIC_GROUP,
    SYNTHETIC_MODULE,
    ArtifactEntry,
    Configuration,
    DependencyDescriptor,
)

logger = logging.getLogger(__name__)

IVY_MAVEN_NAMESPACE = "http://ant.apache.org/ivy/maven"
LIBRARY_GLOB = "*.jar"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

ET.register_namespace("m", IVY_MAVEN_NAMESPACE)


def descriptor_path(extracted_directory: Path, version: str, consumer_name: str) -> Path:
    """Return where the descriptor for ``consumer_name`` is written.

    Example: descriptor_path(Path("/c/ideaIC-2023.1"), "2023.1", "my-plugin")
             -> Path("/c/ideaIC-2023.1/com.jetbrains/ideaIC/2023.1/ivy-my-plugin.xml")
    """
    return (
        extracted_directory
        / SYNTHETIC_GROUP
        / SYNTHETIC_MODULE
        / version
        / f"ivy-{consumer_name}.xml"
    )


def _sorted_by_relative_path(files: Iterable[Path], base: Path) -> list[Path]:
    return sorted(files, key=lambda p: p.relative_to(base).as_posix())


def scan_library_jars(extracted_directory: Path) -> list[Path]:
    """Jars directly inside top-level ``lib*`` directories."""
    jars = (p for p in extracted_directory.glob(f"lib*/{LIBRARY_GLOB}") if p.is_file())
    return _sorted_by_relative_path(jars, extracted_directory)


def scan_bundled_plugin_jars(
    extracted_directory: Path, bundled_plugins: Iterable[str]
) -> list[Path]:
    """Jars in ``plugins/<name>/lib`` for each requested bundled plugin.

    Plugins missing from the distribution are skipped.
    """
    jars: list[Path] = []
    for name in sorted(set(bundled_plugins)):
        lib_dir = extracted_directory / "plugins" / name / "lib"
        if not lib_dir.is_dir():
            logger.debug("Bundled plugin %s not found under %s, skipping", name, extracted_directory)
            continue
        jars.extend(p for p in lib_dir.glob(LIBRARY_GLOB) if p.is_file())
    return _sorted_by_relative_path(jars, extracted_directory)


def build_descriptor(
    extracted_directory: Path,
    version: str,
    bundled_plugins: Iterable[str] = (),
    sources_path: Optional[Path] = None,
    *,
    tools_jar: Optional[Path] = None,
) -> DependencyDescriptor:
    """Assemble the descriptor for an extracted distribution without writing it."""
    descriptor = DependencyDescriptor(
        module_group=SYNTHETIC_GROUP,
        module_name=SYNTHETIC_MODULE,
        module_version=version,
    )
    descriptor.add_configuration(Configuration.COMPILE)
    descriptor.add_configuration(Configuration.SOURCES)
    descriptor.add_configuration(Configuration.RUNTIME)

    for jar in scan_library_jars(extracted_directory):
        descriptor.add_artifact(
            ArtifactEntry(file=jar, configuration=Configuration.COMPILE, base_directory=extracted_directory)
        )

    for jar in scan_bundled_plugin_jars(extracted_directory, bundled_plugins):
        descriptor.add_artifact(
            ArtifactEntry(file=jar, configuration=Configuration.COMPILE, base_directory=extracted_directory)
        )

    if tools_jar is not None:
        descriptor.add_artifact(
            ArtifactEntry(file=tools_jar, configuration=Configuration.RUNTIME, base_directory=tools_jar.parent)
        )

    if sources_path is not None:
        # Named after the module so the sources resolve by classifier convention.
        descriptor.add_artifact(
            ArtifactEntry(
                file=sources_path,
                configuration=Configuration.SOURCES,
                base_directory=sources_path.parent,
                name=SYNTHETIC_MODULE,
                classifier="sources",
                artifact_type="sources",
            )
        )

    return descriptor


def render_descriptor(descriptor: DependencyDescriptor) -> str:
    """Serialize a descriptor as an Ivy 2.0 module document."""
    root = ET.Element("ivy-module", {"version": "2.0"})
    ET.SubElement(
        root,
        "info",
        {
            "organisation": descriptor.module_group,
            "module": descriptor.module_name,
            "revision": descriptor.module_version,
            "status": "integration",
        },
    )

    configurations = ET.SubElement(root, "configurations")
    for name in descriptor.configurations:
        ET.SubElement(configurations, "conf", {"name": name, "visibility": "public"})

    publications = ET.SubElement(root, "publications")
    for artifact in descriptor.artifacts:
        attributes = {
            "name": artifact.relative_name,
            "type": artifact.type,
            "ext": artifact.extension,
            "conf": artifact.configuration.value,
        }
        if artifact.classifier:
            attributes[f"{{{IVY_MAVEN_NAMESPACE}}}classifier"] = artifact.classifier
        ET.SubElement(publications, "artifact", attributes)

    ET.SubElement(root, "dependencies")

    ET.indent(root, space="  ")
    return _XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


def write_descriptor(descriptor: DependencyDescriptor, path: Path) -> None:
    """Write the rendered descriptor, replacing any previous file at ``path``.

    Raises:
        DescriptorWriteError: If the file or its parent directories cannot
            be written.
    """
    content = render_descriptor(descriptor)
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise DescriptorWriteError(path, str(e)) from e


def generate(
    extracted_directory: Path,
    version: str,
    bundled_plugins: Iterable[str] = (),
    sources_path: Optional[Path] = None,
    *,
    consumer_name: str,
    tools_jar: Optional[Path] = None,
) -> tuple[DependencyDescriptor, Path]:
    """Build the descriptor for a distribution and write it for ``consumer_name``.

    Returns:
        The descriptor and the path it was written to.
    """
    descriptor = build_descriptor(
        extracted_directory,
        version,
        bundled_plugins,
        sources_path,
        tools_jar=tools_jar,
    )
    path = descriptor_path(extracted_directory, version, consumer_name)
    write_descriptor(descriptor, path)
    logger.info(
        "Wrote %s with %d artifacts to %s",
        descriptor.module_id,
        len(descriptor.artifacts),
        path,
    )
    return descriptor, path
