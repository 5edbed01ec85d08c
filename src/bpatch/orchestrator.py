"""Decide which build descriptors to patch and sequence the patch steps.

The orchestrator maps a language and the project settings onto rows of the
catalog, picks the build tool present in the project, and calls the patch
tools in a fixed order. Every step is synchronous; for Gradle the build script
is re-read before each block merge so a step never works on stale content.

The caller is expected to hold exclusive access to the project's build
descriptors for the duration of one call. Nothing here locks files.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .catalog import DEFAULT_CATALOG, Catalog, PomEntry
from .settings import ProjectSettings
from .tools.commands import CommandRunner, run_command
from .tools.errors import UnsupportedConfigurationError
from .tools.files import exists
from .tools.gradle import apply_gradle_blocks
from .tools.markup import to_node
from .tools.pom import add_entry_to_pom
from .tools.tree import EntryMergeAction

LOGGER = logging.getLogger(__name__)

OutputSink = Callable[[str], None]

POM_FILE = "pom.xml"
GRADLE_FILE = "build.gradle"

MSG_ADD_PACKAGE_START = "Start adding test packages to the project."
MSG_ADD_PACKAGE_END = "Finished adding test packages to the project."
MSG_LOAD_LIBRARIES = "Proceeding to load test libraries."
MSG_ADDED_NUGET_PACKAGE = "Added NuGet package:"
MSG_ADDED_PROJECT_REFERENCE = "Added project reference:"
MSG_UPDATED_POM = "Updated pom.xml:"
MSG_UPDATED_GRADLE_BLOCK = "Updated build.gradle block:"
MSG_SKIPPED_GRADLE_BLOCK = "Kept existing build.gradle block:"
MSG_ERR_JAVA_PROJECT_WITHOUT_BUILD_TOOLS = "Java project has neither pom.xml nor build.gradle."
MSG_ERR_LANGUAGE_NOT_SUPPORTED = "Programming language is not supported:"


class ProgramLanguage(str, Enum):
    """Languages with merge rules."""

    JAVA = "java"
    CSHARP = "csharp"


class BuildTool(str, Enum):
    MAVEN = "maven"
    GRADLE = "gradle"
    DOTNET = "dotnet"


@dataclass(slots=True)
class ProvisionStep:
    """One patch step and whether it modified the project."""

    target: Path
    description: str
    changed: bool


@dataclass(slots=True)
class ProvisionReport:
    """Summary of an :func:`add_packages_for_test_project` call."""

    language: ProgramLanguage
    build_tool: BuildTool
    steps: List[ProvisionStep] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(step.changed for step in self.steps)

    @property
    def touched_paths(self) -> tuple[Path, ...]:
        seen: dict[Path, None] = {}
        for step in self.steps:
            if step.changed:
                seen.setdefault(step.target, None)
        return tuple(seen)


def _parse_language(language: ProgramLanguage | str) -> ProgramLanguage:
    try:
        return ProgramLanguage(str(getattr(language, "value", language)).strip().lower())
    except ValueError as error:
        raise UnsupportedConfigurationError(
            f"{MSG_ERR_LANGUAGE_NOT_SUPPORTED} {language}",
            details={"language": str(language)},
        ) from error


def _relative_posix(path: Path, root: Path) -> str:
    return Path(os.path.relpath(Path(path).resolve(), Path(root).resolve())).as_posix()


def add_packages_for_test_project(
    *,
    language: ProgramLanguage | str,
    root_project_path: Path,
    source_path: Optional[Path] = None,
    test_folder_path: Optional[Path] = None,
    settings: Optional[ProjectSettings] = None,
    catalog: Catalog = DEFAULT_CATALOG,
    output: Optional[OutputSink] = None,
    runner: CommandRunner = run_command,
) -> ProvisionReport:
    """Add the test dependencies and coverage tooling for ``language``."""

    settings = settings or ProjectSettings()
    root = Path(root_project_path)

    def emit(message: str) -> None:
        LOGGER.info(message)
        if output is not None:
            output(message)

    emit(MSG_ADD_PACKAGE_START)
    resolved = _parse_language(language)
    if resolved is ProgramLanguage.CSHARP:
        report = _add_csharp_packages(
            root=root,
            source_path=source_path,
            test_folder_path=test_folder_path,
            settings=settings,
            catalog=catalog,
            emit=emit,
            runner=runner,
        )
    else:
        report = _add_java_packages(
            root=root,
            test_folder_path=test_folder_path,
            settings=settings,
            catalog=catalog,
            emit=emit,
        )
    emit(MSG_ADD_PACKAGE_END)
    return report


def _add_csharp_packages(
    *,
    root: Path,
    source_path: Optional[Path],
    test_folder_path: Optional[Path],
    settings: ProjectSettings,
    catalog: Catalog,
    emit: OutputSink,
    runner: CommandRunner,
) -> ProvisionReport:
    if source_path is None or test_folder_path is None:
        raise UnsupportedConfigurationError(
            "C# projects need both a source folder and a test folder.",
            details={"source_path": source_path, "test_folder_path": test_folder_path},
        )

    rules = catalog.csharp
    packages = rules.packages_for(settings.csharp.framework_test)
    report = ProvisionReport(language=ProgramLanguage.CSHARP, build_tool=BuildTool.DOTNET)

    emit(MSG_LOAD_LIBRARIES)
    for package in packages:
        runner(Path(test_folder_path), rules.command, ["add", "package", package])
        emit(f"{MSG_ADDED_NUGET_PACKAGE} {package}")
        report.steps.append(ProvisionStep(Path(test_folder_path), f"package {package}", True))

    relative_source = _relative_posix(source_path, root)
    relative_test = _relative_posix(test_folder_path, root)
    runner(root, rules.command, ["add", relative_test, "reference", relative_source])
    emit(f"{MSG_ADDED_PROJECT_REFERENCE} {relative_test} -> {relative_source}")
    report.steps.append(ProvisionStep(Path(test_folder_path), f"reference {relative_source}", True))
    return report


def _java_test_source_directory(
    *,
    root: Path,
    test_folder_path: Optional[Path],
    settings: ProjectSettings,
    catalog: Catalog,
) -> str:
    if test_folder_path is not None:
        candidate = Path(test_folder_path)
        return _relative_posix(candidate, root) if candidate.is_absolute() else candidate.as_posix()
    return settings.test_folder_override() or catalog.java.default_test_folder(settings.java.framework_test)


def _add_java_packages(
    *,
    root: Path,
    test_folder_path: Optional[Path],
    settings: ProjectSettings,
    catalog: Catalog,
    emit: OutputSink,
) -> ProvisionReport:
    pom_file = root / POM_FILE
    gradle_file = root / GRADLE_FILE
    framework = settings.java.framework_test

    if not exists(pom_file) and not exists(gradle_file):
        raise UnsupportedConfigurationError(
            MSG_ERR_JAVA_PROJECT_WITHOUT_BUILD_TOOLS,
            details={"root": root.as_posix()},
        )

    if exists(pom_file):
        maven = catalog.java.maven
        test_source_directory = _java_test_source_directory(
            root=root,
            test_folder_path=test_folder_path,
            settings=settings,
            catalog=catalog,
        )
        entries = [
            PomEntry(path=maven.test_source_directory, value=test_source_directory),
            maven.jacoco,
            *catalog.java.maven_test_entries(framework),
        ]
        report = ProvisionReport(language=ProgramLanguage.JAVA, build_tool=BuildTool.MAVEN)
        for entry in entries:
            action = add_entry_to_pom(
                pom_file,
                entry.path,
                maven.key_fields,
                to_node(entry.value),
                replace_if_found=entry.replace_if_found,
            )
            changed = action is not EntryMergeAction.UNCHANGED
            description = "/".join(entry.path)
            if changed:
                emit(f"{MSG_UPDATED_POM} {description} ({action.value})")
            report.steps.append(ProvisionStep(pom_file, description, changed))
        return report

    report = ProvisionReport(language=ProgramLanguage.JAVA, build_tool=BuildTool.GRADLE)
    specs = catalog.java.gradle.specs_for(framework)
    for spec, result in zip(specs, apply_gradle_blocks(gradle_file, specs)):
        if result.changed:
            emit(f"{MSG_UPDATED_GRADLE_BLOCK} {spec.name}")
        elif result.suppressed:
            emit(f"{MSG_SKIPPED_GRADLE_BLOCK} {spec.name}")
        report.steps.append(ProvisionStep(gradle_file, spec.name, result.changed))
    return report


__all__ = [
    "BuildTool",
    "GRADLE_FILE",
    "OutputSink",
    "POM_FILE",
    "ProgramLanguage",
    "ProvisionReport",
    "ProvisionStep",
    "add_packages_for_test_project",
]
