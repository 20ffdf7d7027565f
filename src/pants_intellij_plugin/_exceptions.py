"""Exception hierarchy for the IntelliJ plugin backend."""

from __future__ import annotations

from pathlib import Path
from typing import Union


class IntelliJPluginError(Exception):
    """Base for all IntelliJ plugin backend errors."""


class ConfigurationError(IntelliJPluginError):
    """An [intellij] option has an unusable value."""

    def __init__(self, message: str, *, field: str | None = None):
        self.field = field
        prefix = f"[{field}] " if field else ""
        super().__init__(f"{prefix}{message}")


class ResolutionError(IntelliJPluginError):
    """A module coordinate could not be resolved to exactly one file."""

    def __init__(self, coordinate: str, message: str):
        self.coordinate = coordinate
        super().__init__(f"Could not resolve {coordinate}: {message}")


class ExtractionError(IntelliJPluginError):
    """The distribution archive could not be extracted."""

    def __init__(self, archive_path: Union[str, Path], message: str):
        self.archive_path = Path(archive_path)
        super().__init__(f"Failed to extract {archive_path}: {message}")


class DescriptorError(IntelliJPluginError):
    """A synthetic dependency descriptor is inconsistent."""


class DescriptorWriteError(DescriptorError):
    """The synthetic dependency descriptor could not be written."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(f"Failed to write descriptor {path}: {message}")
