"""Pants plugin registration for IntelliJ platform plugin development.

Backend path: pants_intellij_plugin

Enable in pants.toml:

    [GLOBAL]
    backend_packages = [
        "pants_intellij_plugin",
    ]

    [intellij]
    version = "2023.1"
    plugins = ["git4idea"]
"""

from __future__ import annotations

from typing import Iterable, Type

from pants.engine.rules import Rule
from pants.option.subsystem import Subsystem

from pants_intellij_plugin.goals import classpath as classpath_goal
from pants_intellij_plugin.goals import setup as setup_goal
from pants_intellij_plugin.rules import distribution as distribution_rule
from pants_intellij_plugin.subsystem import IntelliJSubsystem
from pants_intellij_plugin.targets import IntelliJPluginTarget


def rules() -> Iterable[Rule]:
    return [
        *distribution_rule.rules(),
        *setup_goal.rules(),
        *classpath_goal.rules(),
    ]


def target_types() -> Iterable[type]:
    return [IntelliJPluginTarget]


def subsystems() -> Iterable[Type[Subsystem]]:
    return [IntelliJSubsystem]
