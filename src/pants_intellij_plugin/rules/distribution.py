"""IntelliJ setup plan rule: intellij_plugin targets -> one shared acquisition plan.

The rule only gathers configuration. Downloading, extracting and writing
descriptors touch a shared cache outside the build root, so the goals do
that work once, in order, through ``IntelliJSetupPlan.acquire``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pants.engine.rules import collect_rules, rule
from pants.engine.target import FieldSet

from pants_intellij_plugin._fetcher import MavenRepositoryResolver
from pants_intellij_plugin._jvm import find_tools_jar
from pants_intellij_plugin._pipeline import acquire_distributions, skip_reason
from pants_intellij_plugin._types import DistributionRequest, IntelliJDistribution
from pants_intellij_plugin.subsystem import IntelliJSubsystem
from pants_intellij_plugin.targets import PluginNameField, PluginXmlField

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Result types
# =============================================================================


@dataclass(frozen=True)
class IntelliJPluginFieldSet(FieldSet):
    """Fields of an intellij_plugin target."""

    required_fields = (PluginNameField,)

    plugin_name: PluginNameField
    plugin_xml: PluginXmlField

    @property
    def consumer_name(self) -> str:
        return self.plugin_name.value or self.address.target_name


@dataclass(frozen=True)
class IntelliJSetupPlanRequest:
    """Request to plan distribution acquisition for a set of plugins."""

    field_sets: tuple[IntelliJPluginFieldSet, ...]


@dataclass(frozen=True)
class IntelliJSetupPlan:
    """What to acquire, from where, and for which consumers."""

    request: DistributionRequest
    resolver: MavenRepositoryResolver
    consumer_names: tuple[str, ...]
    configure_dependencies: bool

    @property
    def skip_message(self) -> Optional[str]:
        return skip_reason(
            configure_dependencies=self.configure_dependencies,
            consumer_count=len(self.consumer_names),
        )

    def acquire(self) -> dict[str, IntelliJDistribution]:
        """Acquire the distribution once and describe it for every consumer."""
        logger.info(
            "Preparing IntelliJ IDEA %s for %s",
            self.request.version,
            ", ".join(self.consumer_names),
        )
        distributions = acquire_distributions(
            self.request,
            self.consumer_names,
            resolver=self.resolver,
            tools_jar=find_tools_jar(),
        )
        return {d.consumer_name: d for d in distributions}


# =============================================================================
# Rules
# =============================================================================


@rule(desc="Plan IntelliJ IDEA distribution setup")
async def plan_intellij_setup(
    request: IntelliJSetupPlanRequest,
    subsystem: IntelliJSubsystem,
) -> IntelliJSetupPlan:
    consumer_names = tuple(dict.fromkeys(fs.consumer_name for fs in request.field_sets))
    return IntelliJSetupPlan(
        request=subsystem.to_request(),
        resolver=subsystem.resolver(),
        consumer_names=consumer_names,
        configure_dependencies=subsystem.configure_dependencies,
    )


def rules():
    return collect_rules()
