from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence

import pytest

from bpatch.orchestrator import (
    MSG_ADD_PACKAGE_END,
    MSG_ADD_PACKAGE_START,
    BuildTool,
    ProgramLanguage,
    add_packages_for_test_project,
)
from bpatch.settings import ProjectSettings
from bpatch.tools.errors import UnsupportedConfigurationError
from bpatch.tools.markup import load_markup_file


class FakeRunner:
    """Records build-tool invocations instead of running them."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, str, list[str]]] = []

    def __call__(self, cwd: Path, executable: str, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        self.calls.append((Path(cwd), executable, list(args)))
        return subprocess.CompletedProcess([executable, *args], 0, "", "")


def _project(document: dict) -> dict:
    return document["project"][0]


def test_maven_project_receives_source_dir_jacoco_and_junit(java_project) -> None:
    java_project.write_pom()
    messages: list[str] = []

    report = add_packages_for_test_project(
        language="java",
        root_project_path=java_project.root,
        output=messages.append,
    )

    project = _project(load_markup_file(java_project.pom))
    build = project["build"][0]
    assert build["testSourceDirectory"] == ["src/test/java"]
    plugins = build["plugins"][0]["plugin"]
    assert [plugin["artifactId"][0] for plugin in plugins] == ["maven-surefire-plugin", "jacoco-maven-plugin"]
    executions = plugins[1]["executions"][0]["execution"]
    assert [execution["id"][0] for execution in executions] == ["prepare-agent", "report"]
    dependencies = project["dependencies"][0]["dependency"]
    assert dependencies[-1]["artifactId"] == ["junit-jupiter"]

    assert report.build_tool is BuildTool.MAVEN
    assert report.touched_paths == (java_project.pom,)
    assert messages[0] == MSG_ADD_PACKAGE_START
    assert messages[-1] == MSG_ADD_PACKAGE_END


def test_maven_run_is_idempotent(java_project) -> None:
    java_project.write_pom()
    add_packages_for_test_project(language="java", root_project_path=java_project.root)
    before = java_project.pom.read_text(encoding="utf-8")

    report = add_packages_for_test_project(language="java", root_project_path=java_project.root)

    assert not report.changed
    assert java_project.pom.read_text(encoding="utf-8") == before


def test_maven_jacoco_plugin_is_updated_in_place(java_project, pom_text: str) -> None:
    outdated = pom_text.replace(
        "</plugins>",
        "  <plugin>\n"
        "        <groupId>org.jacoco</groupId>\n"
        "        <artifactId>jacoco-maven-plugin</artifactId>\n"
        "        <version>0.8.1</version>\n"
        "      </plugin>\n"
        "    </plugins>",
    )
    java_project.write_pom(outdated)

    add_packages_for_test_project(language="java", root_project_path=java_project.root)

    plugins = _project(load_markup_file(java_project.pom))["build"][0]["plugins"][0]["plugin"]
    jacoco = [plugin for plugin in plugins if plugin["artifactId"] == ["jacoco-maven-plugin"]]
    assert len(jacoco) == 1
    assert jacoco[0]["version"] == ["0.8.12"]


def test_maven_uses_settings_and_explicit_test_folder(java_project) -> None:
    java_project.write_pom()
    settings = ProjectSettings.model_validate(
        {"general": {"test_folder_path": "src/it/java"}, "java": {"framework_test": "junit4"}}
    )

    add_packages_for_test_project(language="java", root_project_path=java_project.root, settings=settings)
    project = _project(load_markup_file(java_project.pom))
    assert project["build"][0]["testSourceDirectory"] == ["src/it/java"]
    assert project["dependencies"][0]["dependency"][-1]["artifactId"] == ["junit"]

    add_packages_for_test_project(
        language=ProgramLanguage.JAVA,
        root_project_path=java_project.root,
        test_folder_path=java_project.root / "qa" / "java",
        settings=settings,
    )
    project = _project(load_markup_file(java_project.pom))
    assert project["build"][0]["testSourceDirectory"] == ["qa/java"]


def test_pom_takes_precedence_over_gradle(java_project, gradle_text: str) -> None:
    java_project.write_pom()
    java_project.write_gradle()

    report = add_packages_for_test_project(language="java", root_project_path=java_project.root)

    assert report.build_tool is BuildTool.MAVEN
    assert java_project.gradle.read_text(encoding="utf-8") == gradle_text


def test_gradle_project_receives_all_blocks(java_project) -> None:
    java_project.write_gradle()

    report = add_packages_for_test_project(language="java", root_project_path=java_project.root)

    content = java_project.gradle.read_text(encoding="utf-8")
    assert content.startswith("plugins {\n    id 'groovy'\n    id 'java'\n    id 'jacoco'\n}\n")
    assert "    implementation 'org.apache.commons:commons-lang3:3.12.0'\n" in content
    assert "    testImplementation 'org.junit.jupiter:junit-jupiter:5.10.2'\n" in content
    assert "test {\n    useJUnitPlatform()\n}" in content
    assert "jacocoTestReport {\n    dependsOn test\n    reports {\n" in content
    assert report.build_tool is BuildTool.GRADLE
    assert [step.description for step in report.steps] == ["plugins", "dependencies", "test", "jacocoTestReport"]

    again = add_packages_for_test_project(language="java", root_project_path=java_project.root)
    assert not again.changed
    assert java_project.gradle.read_text(encoding="utf-8") == content


def test_gradle_existing_coverage_block_is_kept(java_project, gradle_text: str) -> None:
    custom = gradle_text + "\njacocoTestReport {\n    dependsOn test\n}\n"
    java_project.write_gradle(custom)
    messages: list[str] = []

    add_packages_for_test_project(language="java", root_project_path=java_project.root, output=messages.append)

    content = java_project.gradle.read_text(encoding="utf-8")
    assert "jacocoTestReport {\n    dependsOn test\n}\n" in content
    assert "reports {" not in content
    assert any("Kept existing" in message and "jacocoTestReport" in message for message in messages)


def test_gradle_junit4_dependencies(java_project) -> None:
    java_project.write_gradle()
    settings = ProjectSettings.model_validate({"java": {"framework_test": "junit4"}})

    add_packages_for_test_project(language="java", root_project_path=java_project.root, settings=settings)

    content = java_project.gradle.read_text(encoding="utf-8")
    assert "testImplementation 'junit:junit:4.13.2'" in content
    assert "junit-jupiter" not in content


def test_java_project_without_build_files_is_rejected(java_project) -> None:
    with pytest.raises(UnsupportedConfigurationError):
        add_packages_for_test_project(language="java", root_project_path=java_project.root)


def test_unknown_language_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedConfigurationError):
        add_packages_for_test_project(language="rust", root_project_path=tmp_path)


def test_unknown_maven_framework_leaves_pom_untouched(java_project, pom_text: str) -> None:
    java_project.write_pom()
    settings = ProjectSettings.model_validate(
        {"general": {"test_folder_path": "src/test/java"}, "java": {"framework_test": "spock"}}
    )

    with pytest.raises(UnsupportedConfigurationError):
        add_packages_for_test_project(language="java", root_project_path=java_project.root, settings=settings)
    assert java_project.pom.read_text(encoding="utf-8") == pom_text


def test_csharp_packages_are_added_then_referenced(tmp_path: Path) -> None:
    root = tmp_path / "solution"
    source = root / "src" / "App"
    tests = root / "tests" / "App.Tests"
    source.mkdir(parents=True)
    tests.mkdir(parents=True)
    runner = FakeRunner()
    messages: list[str] = []

    report = add_packages_for_test_project(
        language="csharp",
        root_project_path=root,
        source_path=source,
        test_folder_path=tests,
        settings=ProjectSettings.model_validate({"csharp": {"framework_test": "nunit"}}),
        output=messages.append,
        runner=runner,
    )

    assert runner.calls == [
        (tests, "dotnet", ["add", "package", "Microsoft.NET.Test.Sdk"]),
        (tests, "dotnet", ["add", "package", "coverlet.collector"]),
        (tests, "dotnet", ["add", "package", "NUnit"]),
        (tests, "dotnet", ["add", "package", "NUnit3TestAdapter"]),
        (root, "dotnet", ["add", "tests/App.Tests", "reference", "src/App"]),
    ]
    assert report.build_tool is BuildTool.DOTNET
    assert "Added NuGet package: NUnit" in messages


def test_csharp_requires_source_and_test_folders(tmp_path: Path) -> None:
    runner = FakeRunner()

    with pytest.raises(UnsupportedConfigurationError):
        add_packages_for_test_project(language="csharp", root_project_path=tmp_path, runner=runner)
    assert runner.calls == []
