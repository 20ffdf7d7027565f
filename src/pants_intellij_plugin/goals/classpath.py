"""intellij-classpath goal: print the IDE run or test classpath."""

from pants.engine.console import Console
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.rules import Get, collect_rules, goal_rule
from pants.engine.target import FilteredTargets
from pants.option.option_types import BoolOption

from pants_intellij_plugin.rules.distribution import (
    IntelliJPluginFieldSet,
    IntelliJSetupPlan,
    IntelliJSetupPlanRequest,
)
from pants_intellij_plugin.targets import PluginNameField


class IntelliJClasspathGoalSubsystem(GoalSubsystem):
    name = "intellij-classpath"
    help = "Print the IntelliJ IDEA classpath for intellij_plugin targets, one entry per line."

    test = BoolOption(
        default=False,
        help="Print the test classpath (adds the IDE test boot jars) instead of the run classpath.",
    )


class IntelliJClasspathGoal(Goal):
    subsystem_cls = IntelliJClasspathGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_intellij_classpath(
    console: Console,
    targets: FilteredTargets,
    subsystem: IntelliJClasspathGoalSubsystem,
) -> IntelliJClasspathGoal:
    field_sets = tuple(
        IntelliJPluginFieldSet.create(t) for t in targets if t.has_field(PluginNameField)
    )

    plan = await Get(IntelliJSetupPlan, IntelliJSetupPlanRequest(field_sets))
    if plan.skip_message:
        console.print_stderr(plan.skip_message)
        return IntelliJClasspathGoal(exit_code=0)

    distributions = plan.acquire()

    for consumer_name, distribution in distributions.items():
        entries = distribution.test_classpath if subsystem.test else distribution.run_classpath
        if len(distributions) > 1:
            console.print_stdout(f"# {consumer_name}")
        for entry in entries:
            console.print_stdout(str(entry))

    return IntelliJClasspathGoal(exit_code=0)


def rules():
    return collect_rules()
