"""IntelliJ platform plugin target types for Pants BUILD files.

Provides:
  - intellij_plugin: a plugin built against an IntelliJ IDEA distribution
"""

from __future__ import annotations

from pants.engine.target import COMMON_TARGET_FIELDS, StringField, Target
from pants.util.strutil import softwrap


class PluginNameField(StringField):
    alias = "plugin_name"
    default = None
    help = softwrap(
        """
        Plugin name. Used to name the generated dependency descriptor
        (ivy-<plugin_name>.xml) and the dist/<plugin_name>/ output directory.
        Defaults to the target name.
        """
    )


class PluginXmlField(StringField):
    alias = "plugin_xml"
    default = "src/main/resources/META-INF/plugin.xml"
    help = softwrap(
        """
        Path to the plugin descriptor, relative to the BUILD file.
        A warning is printed when it does not exist.
        """
    )


class IntelliJPluginTarget(Target):
    alias = "intellij_plugin"
    help = softwrap(
        """
        An IntelliJ platform plugin compiled against the IDEA distribution
        configured in [intellij].

        Example:

            intellij_plugin(
                name="my-plugin",
                plugin_xml="resources/META-INF/plugin.xml",
            )
        """
    )
    core_fields = (
        *COMMON_TARGET_FIELDS,
        PluginNameField,
        PluginXmlField,
    )
