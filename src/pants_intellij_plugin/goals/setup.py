"""intellij-setup goal: acquire the IDE and write dist/<plugin>/intellij-distribution.yml."""

from __future__ import annotations

from pathlib import Path

from pants.engine.console import Console
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.rules import Get, collect_rules, goal_rule
from pants.engine.target import FilteredTargets

from pants_intellij_plugin.rules.distribution import (
    IntelliJPluginFieldSet,
    IntelliJSetupPlan,
    IntelliJSetupPlanRequest,
)
from pants_intellij_plugin.targets import PluginNameField, PluginXmlField


class IntelliJSetupGoalSubsystem(GoalSubsystem):
    name = "intellij-setup"
    help = "Download and extract IntelliJ IDEA and generate its dependency descriptor."


class IntelliJSetupGoal(Goal):
    subsystem_cls = IntelliJSetupGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_intellij_setup(
    console: Console,
    targets: FilteredTargets,
) -> IntelliJSetupGoal:
    plugin_targets = [t for t in targets if t.has_field(PluginNameField)]
    field_sets = tuple(IntelliJPluginFieldSet.create(t) for t in plugin_targets)

    plan = await Get(IntelliJSetupPlan, IntelliJSetupPlanRequest(field_sets))
    if plan.skip_message:
        console.print_stderr(plan.skip_message)
        return IntelliJSetupGoal(exit_code=0)

    distributions = plan.acquire()

    dist_dir = Path("dist")

    for target in plugin_targets:
        plugin_xml = Path(target.address.spec_path) / target[PluginXmlField].value
        if not plugin_xml.is_file():
            console.print_stderr(
                f"WARN: plugin.xml not found at {plugin_xml} ({target.address}). "
                "The plugin will not load in the IDE."
            )

    for consumer_name, distribution in distributions.items():
        output_dir = dist_dir / consumer_name
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / "intellij-distribution.yml"
        output_path.write_text(distribution.to_yaml(), encoding="utf-8")

        console.print_stdout(
            f"Prepared IntelliJ IDEA {distribution.version} for {consumer_name}: {output_path}"
        )
        console.print_stdout(f"  Descriptor: {distribution.descriptor_path}")

    return IntelliJSetupGoal(exit_code=0)


def rules():
    return collect_rules()
