"""Project settings read from ``bpatch.yaml``."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .tools.errors import SettingsError

DEFAULT_SETTINGS_NAME = "bpatch.yaml"

DEFAULT_SETTINGS_TEMPLATE: Dict[str, Any] = {
    "general": {
        "test_folder_path": "",
    },
    "java": {
        "framework_test": "junit5",
    },
    "csharp": {
        "framework_test": "xunit",
    },
}


class SettingsModel(BaseModel):
    """Base model with strict field handling."""

    model_config = ConfigDict(extra="forbid")


class GeneralSettings(SettingsModel):
    test_folder_path: Optional[str] = None


class JavaSettings(SettingsModel):
    framework_test: str = "junit5"


class CsharpSettings(SettingsModel):
    framework_test: str = "xunit"


class ProjectSettings(SettingsModel):
    """Per-project choices that select rows of the catalog."""

    general: GeneralSettings = Field(default_factory=GeneralSettings)
    java: JavaSettings = Field(default_factory=JavaSettings)
    csharp: CsharpSettings = Field(default_factory=CsharpSettings)

    def test_folder_override(self) -> str | None:
        value = (self.general.test_folder_path or "").strip()
        return value or None


def load_settings(path: Path) -> ProjectSettings:
    """Load settings from ``path``; a missing file yields the defaults."""

    if not path.exists():
        return ProjectSettings()

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise SettingsError(f"Failed to parse settings {path}: {error}") from error

    if not isinstance(data, dict):
        raise SettingsError(f"Settings {path} must be a mapping at the top level.")

    try:
        return ProjectSettings.model_validate(data)
    except ValidationError as error:
        raise SettingsError(f"Invalid settings in {path}: {error}") from error


def default_settings_yaml() -> str:
    """Render the default settings template."""

    return yaml.safe_dump(copy.deepcopy(DEFAULT_SETTINGS_TEMPLATE), sort_keys=False)


__all__ = [
    "DEFAULT_SETTINGS_NAME",
    "ProjectSettings",
    "default_settings_yaml",
    "load_settings",
]
