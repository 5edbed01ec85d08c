from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from bpatch.catalog import DEFAULT_CATALOG, catalog_from_mapping, load_catalog
from bpatch.settings import ProjectSettings, default_settings_yaml, load_settings
from bpatch.tools.errors import SettingsError, UnsupportedConfigurationError


def test_missing_settings_file_yields_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "bpatch.yaml")

    assert settings == ProjectSettings()
    assert settings.java.framework_test == "junit5"
    assert settings.csharp.framework_test == "xunit"
    assert settings.test_folder_override() is None


def test_default_settings_template_loads(tmp_path: Path) -> None:
    path = tmp_path / "bpatch.yaml"
    path.write_text(default_settings_yaml(), encoding="utf-8")

    assert load_settings(path) == ProjectSettings(general={"test_folder_path": ""})
    assert load_settings(path).test_folder_override() is None


@pytest.mark.parametrize(
    "content",
    [
        "java: [unclosed\n",
        "- just\n- a list\n",
        "java:\n  framework: junit5\n",
    ],
)
def test_invalid_settings_are_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bpatch.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(SettingsError):
        load_settings(path)


def test_default_catalog_gradle_blocks() -> None:
    specs = DEFAULT_CATALOG.java.gradle.specs_for("junit5")

    assert [spec.name for spec in specs] == ["plugins", "dependencies", "test", "jacocoTestReport"]
    assert [spec.overwrite for spec in specs] == [True, True, True, False]

    junit4 = {spec.name: spec for spec in DEFAULT_CATALOG.java.gradle.specs_for("junit4")}
    assert "testImplementation 'junit:junit:4.13.2'" in junit4["dependencies"].items

    unknown = {spec.name: spec for spec in DEFAULT_CATALOG.java.gradle.specs_for("testng")}
    assert unknown["dependencies"].items == {spec.name: spec for spec in specs}["dependencies"].items


def test_default_catalog_lookups() -> None:
    assert DEFAULT_CATALOG.java.default_test_folder("junit4") == "src/test/java"
    assert DEFAULT_CATALOG.csharp.packages_for("xunit") == (
        "Microsoft.NET.Test.Sdk",
        "coverlet.collector",
        "xunit",
        "xunit.runner.visualstudio",
    )
    assert DEFAULT_CATALOG.java.maven.jacoco.replace_if_found

    with pytest.raises(UnsupportedConfigurationError):
        DEFAULT_CATALOG.csharp.packages_for("specflow")
    with pytest.raises(UnsupportedConfigurationError):
        DEFAULT_CATALOG.java.maven_test_entries("spock")


def test_catalog_yaml_override_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(DEFAULT_CATALOG.model_dump(mode="json"), handle, sort_keys=False)

    assert load_catalog(path) == DEFAULT_CATALOG


def test_invalid_catalog_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        catalog_from_mapping({"java": {}})
    with pytest.raises(SettingsError):
        load_catalog(tmp_path / "missing.yaml")
