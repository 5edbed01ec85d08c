"""Static lookup table describing what to merge for each ecosystem.

The catalog is plain data: block names and lines for Gradle, node paths and
entries for Maven, NuGet package names for C#. The patching tools never read
it; :mod:`bpatch.orchestrator` hands them the relevant pieces per call.

POM entries are written in a compact form (``{"groupId": "junit"}``) and
expanded into the node-list shape with :func:`bpatch.tools.markup.to_node`
when used. Lists in the compact form become repeated elements.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .tools.blocks import BlockSpec
from .tools.errors import SettingsError, UnsupportedConfigurationError


class CatalogModel(BaseModel):
    """Base model for immutable catalog records."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class PomEntry(CatalogModel):
    """Entry merged into the node list found at ``path``."""

    path: Tuple[str, ...]
    value: Union[str, Dict[str, Any]]
    replace_if_found: bool = False


class MavenRules(CatalogModel):
    key_fields: Tuple[str, ...] = ("artifactId", "groupId")
    test_source_directory: Tuple[str, ...] = ("project", "build", "testSourceDirectory")
    jacoco: PomEntry
    test: Dict[str, Tuple[PomEntry, ...]] = Field(default_factory=dict)


class GradleBlockRule(CatalogModel):
    """Lines wanted in one Gradle block, optionally varying per framework."""

    name: str
    items: Tuple[str, ...] = ()
    overwrite: bool = True
    by_framework: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    def to_spec(self, framework: str | None = None) -> BlockSpec:
        items = self.by_framework.get(framework or "") or self.items
        return BlockSpec(name=self.name, items=tuple(items), overwrite=self.overwrite)


class GradleRules(CatalogModel):
    blocks: Tuple[GradleBlockRule, ...]

    def specs_for(self, framework: str | None) -> Tuple[BlockSpec, ...]:
        return tuple(rule.to_spec(framework) for rule in self.blocks)


class JavaRules(CatalogModel):
    maven: MavenRules
    gradle: GradleRules
    test_folders: Dict[str, str] = Field(default_factory=dict)

    def default_test_folder(self, framework: str) -> str:
        try:
            return self.test_folders[framework]
        except KeyError as error:
            raise UnsupportedConfigurationError(
                f"No default test folder for Java framework {framework!r}.",
                details={"framework": framework},
            ) from error

    def maven_test_entries(self, framework: str) -> Tuple[PomEntry, ...]:
        try:
            return self.maven.test[framework]
        except KeyError as error:
            raise UnsupportedConfigurationError(
                f"No Maven dependencies configured for Java framework {framework!r}.",
                details={"framework": framework, "known": sorted(self.maven.test)},
            ) from error


class CsharpRules(CatalogModel):
    command: str = "dotnet"
    common: Tuple[str, ...] = ()
    frameworks: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    def packages_for(self, framework: str) -> Tuple[str, ...]:
        try:
            specific = self.frameworks[framework]
        except KeyError as error:
            raise UnsupportedConfigurationError(
                f"No NuGet packages configured for C# framework {framework!r}.",
                details={"framework": framework, "known": sorted(self.frameworks)},
            ) from error
        return (*self.common, *specific)


class Catalog(CatalogModel):
    java: JavaRules
    csharp: CsharpRules


_JUNIT_JUPITER = "5.10.2"

_DEFAULT_CATALOG_DATA: Dict[str, Any] = {
    "java": {
        "maven": {
            "key_fields": ["artifactId", "groupId"],
            "test_source_directory": ["project", "build", "testSourceDirectory"],
            "jacoco": {
                "path": ["project", "build", "plugins", "plugin"],
                "replace_if_found": True,
                "value": {
                    "groupId": "org.jacoco",
                    "artifactId": "jacoco-maven-plugin",
                    "version": "0.8.12",
                    "executions": {
                        "execution": [
                            {"id": "prepare-agent", "goals": {"goal": "prepare-agent"}},
                            {"id": "report", "phase": "test", "goals": {"goal": "report"}},
                        ]
                    },
                },
            },
            "test": {
                "junit4": [
                    {
                        "path": ["project", "dependencies", "dependency"],
                        "value": {
                            "groupId": "junit",
                            "artifactId": "junit",
                            "version": "4.13.2",
                            "scope": "test",
                        },
                    }
                ],
                "junit5": [
                    {
                        "path": ["project", "dependencies", "dependency"],
                        "value": {
                            "groupId": "org.junit.jupiter",
                            "artifactId": "junit-jupiter",
                            "version": _JUNIT_JUPITER,
                            "scope": "test",
                        },
                    }
                ],
            },
        },
        "gradle": {
            "blocks": [
                {"name": "plugins", "items": ["id 'java'", "id 'jacoco'"]},
                {
                    "name": "dependencies",
                    "items": [
                        f"testImplementation 'org.junit.jupiter:junit-jupiter:{_JUNIT_JUPITER}'",
                        "testRuntimeOnly 'org.junit.platform:junit-platform-launcher'",
                    ],
                    "by_framework": {
                        "junit4": [
                            "testImplementation 'junit:junit:4.13.2'",
                            f"testRuntimeOnly 'org.junit.vintage:junit-vintage-engine:{_JUNIT_JUPITER}'",
                            "testRuntimeOnly 'org.junit.platform:junit-platform-launcher'",
                        ],
                    },
                },
                {"name": "test", "items": ["useJUnitPlatform()"]},
                {
                    "name": "jacocoTestReport",
                    "overwrite": False,
                    "items": [
                        "dependsOn test",
                        "reports {",
                        "xml.required = true",
                        "csv.required = true",
                        'csv.outputLocation = file("$rootDir/target/site/jacoco/jacoco.csv")',
                        "}",
                    ],
                },
            ]
        },
        "test_folders": {"junit4": "src/test/java", "junit5": "src/test/java"},
    },
    "csharp": {
        "command": "dotnet",
        "common": ["Microsoft.NET.Test.Sdk", "coverlet.collector"],
        "frameworks": {
            "xunit": ["xunit", "xunit.runner.visualstudio"],
            "nunit": ["NUnit", "NUnit3TestAdapter"],
            "mstest": ["MSTest.TestFramework", "MSTest.TestAdapter"],
        },
    },
}

DEFAULT_CATALOG = Catalog.model_validate(_DEFAULT_CATALOG_DATA)


def catalog_from_mapping(data: Mapping[str, Any]) -> Catalog:
    """Validate ``data`` into a :class:`Catalog`."""

    try:
        return Catalog.model_validate(dict(data))
    except ValidationError as error:
        raise SettingsError(f"Invalid catalog: {error}") from error


def load_catalog(path: Path) -> Catalog:
    """Load a catalog override from the YAML file at ``path``."""

    if not path.exists():
        raise SettingsError(f"Catalog file not found: {path}", details={"path": path.as_posix()})
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise SettingsError(f"Failed to parse catalog {path}: {error}") from error
    if not isinstance(data, dict):
        raise SettingsError(f"Catalog {path} must be a mapping at the top level.")
    return catalog_from_mapping(data)


__all__ = [
    "Catalog",
    "CsharpRules",
    "DEFAULT_CATALOG",
    "GradleBlockRule",
    "GradleRules",
    "JavaRules",
    "MavenRules",
    "PomEntry",
    "catalog_from_mapping",
    "load_catalog",
]
