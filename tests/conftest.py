from __future__ import annotations

import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


GRADLE_BUILD = textwrap.dedent(
    """
    plugins {
        id 'groovy'
    }

    repositories {
        mavenCentral()
    }

    dependencies {
        implementation 'org.apache.commons:commons-lang3:3.12.0'
    }
    """
).lstrip()


POM_XML = textwrap.dedent(
    """
    <?xml version="1.0" encoding="UTF-8"?>
    <project xmlns="http://maven.apache.org/POM/4.0.0" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 http://maven.apache.org/xsd/maven-4.0.0.xsd">
      <modelVersion>4.0.0</modelVersion>
      <groupId>com.example</groupId>
      <artifactId>demo</artifactId>
      <version>1.0.0</version>
      <dependencies>
        <dependency>
          <groupId>org.apache.commons</groupId>
          <artifactId>commons-lang3</artifactId>
          <version>3.12.0</version>
        </dependency>
      </dependencies>
      <build>
        <plugins>
          <plugin>
            <groupId>org.apache.maven.plugins</groupId>
            <artifactId>maven-surefire-plugin</artifactId>
            <version>3.2.5</version>
          </plugin>
        </plugins>
      </build>
    </project>
    """
).lstrip()


@dataclass(slots=True)
class JavaProject:
    """Fixture payload describing a Java project root on disk."""

    root: Path

    @property
    def pom(self) -> Path:
        return self.root / "pom.xml"

    @property
    def gradle(self) -> Path:
        return self.root / "build.gradle"

    def write_pom(self, content: str = POM_XML) -> Path:
        self.pom.write_text(content, encoding="utf-8")
        return self.pom

    def write_gradle(self, content: str = GRADLE_BUILD) -> Path:
        self.gradle.write_text(content, encoding="utf-8")
        return self.gradle


@pytest.fixture()
def java_project(tmp_path: Path) -> JavaProject:
    """Create an empty Java project folder; tests add the build files they need."""

    root = tmp_path / "java-app"
    (root / "src" / "main" / "java").mkdir(parents=True)
    return JavaProject(root=root)


@pytest.fixture()
def gradle_text() -> str:
    return GRADLE_BUILD


@pytest.fixture()
def pom_text() -> str:
    return POM_XML
