"""CLI commands for adding test tooling to existing build descriptors."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer

from .catalog import DEFAULT_CATALOG, Catalog, load_catalog
from .orchestrator import ProgramLanguage, add_packages_for_test_project
from .settings import DEFAULT_SETTINGS_NAME, ProjectSettings, default_settings_yaml, load_settings
from .tools.errors import BuildPatchError
from .tools.files import read_text, write_text
from .tools.blocks import merge_block
from .tools.markup import to_node
from .tools.pom import add_entry_to_pom
from .tools.tree import leaf_text

APP_HELP = "Insert test dependencies, plugins and coverage tooling into build descriptors."

app = typer.Typer(help=APP_HELP)


def _load_settings(config_path: Path) -> ProjectSettings:
    try:
        return load_settings(config_path)
    except BuildPatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error


def _load_catalog(catalog_path: Optional[Path]) -> Catalog:
    if catalog_path is None:
        return DEFAULT_CATALOG
    try:
        return load_catalog(catalog_path)
    except BuildPatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error


def _parse_entry_value(raw: str) -> Any:
    """Decode a JSON entry; objects are expanded into the node-list shape."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as error:
        raise typer.BadParameter(f"Entry value must be JSON: {error}") from error
    if isinstance(value, dict):
        return to_node(value)
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return leaf_text(value)
    raise typer.BadParameter("Entry value must be a JSON object, string or number.")


@app.command()
def init(
    config: str = typer.Option(
        DEFAULT_SETTINGS_NAME,
        "--config",
        "-c",
        help="Path to the settings file to create.",
    ),
) -> None:
    """Write a default settings file if none exists."""
    config_path = Path(config)
    if config_path.exists():
        typer.echo(f"Settings already exist at {config_path}.")
        return
    write_text(config_path, default_settings_yaml())
    typer.echo(f"Created settings at {config_path}.")


@app.command("add-packages")
def add_packages(
    language: ProgramLanguage = typer.Option(
        ...,
        "--language",
        "-l",
        case_sensitive=False,
        help="Language of the project under test.",
    ),
    root: Path = typer.Option(
        Path("."),
        "--root",
        "-r",
        help="Root folder of the project.",
    ),
    source: Optional[Path] = typer.Option(
        None,
        "--source",
        help="Source folder (required for C#).",
    ),
    test_folder: Optional[Path] = typer.Option(
        None,
        "--test-folder",
        help="Test folder; overrides the settings file for Java.",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Settings file (defaults to bpatch.yaml under the project root).",
    ),
    catalog: Optional[Path] = typer.Option(
        None,
        "--catalog",
        help="YAML catalog replacing the built-in merge rules.",
    ),
) -> None:
    """Add test dependencies and coverage tooling to the project at ``root``."""
    settings = _load_settings(config or root / DEFAULT_SETTINGS_NAME)
    rules = _load_catalog(catalog)
    try:
        report = add_packages_for_test_project(
            language=language,
            root_project_path=root,
            source_path=source,
            test_folder_path=test_folder,
            settings=settings,
            catalog=rules,
            output=typer.echo,
        )
    except BuildPatchError as error:
        typer.echo(f"Failed to add packages: {error}")
        raise typer.Exit(code=1) from error

    if report.touched_paths:
        for path in report.touched_paths:
            typer.echo(f"- modified {path.as_posix()}")
    else:
        typer.echo("Project already up to date.")


@app.command("merge-block")
def merge_block_command(
    file: Path = typer.Argument(..., help="Brace-delimited build script to patch."),
    name: str = typer.Option(..., "--name", "-n", help="Block name, e.g. dependencies."),
    item: List[str] = typer.Option(
        None,
        "--item",
        "-i",
        help="Line wanted inside the block (repeatable).",
    ),
    overwrite: bool = typer.Option(
        True,
        "--overwrite/--no-overwrite",
        help="Leave the block alone when it already exists.",
    ),
) -> None:
    """Merge lines into a named block of a build script."""
    try:
        content = read_text(file)
        result = merge_block(content, name, item or [], overwrite=overwrite)
        if result.changed:
            write_text(file, result.text)
    except BuildPatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error

    if result.changed:
        typer.echo(f"updated {name}: {', '.join(result.added)}")
    elif result.suppressed:
        typer.echo(f"unchanged {name}: existing block kept")
    else:
        typer.echo(f"unchanged {name}")


@app.command("merge-entry")
def merge_entry_command(
    file: Path = typer.Argument(..., help="Markup build descriptor to patch."),
    path: str = typer.Option(..., "--path", "-p", help="Slash separated node path, e.g. project/dependencies/dependency."),
    key: List[str] = typer.Option(
        None,
        "--key",
        "-k",
        help="Field identifying an existing entry (repeatable).",
    ),
    value: str = typer.Option(..., "--value", "-v", help="Entry as JSON (object or string)."),
    replace: bool = typer.Option(
        False,
        "--replace/--no-replace",
        help="Update a matching entry instead of leaving it alone.",
    ),
) -> None:
    """Merge an entry into the node list at ``path``."""
    segments = [segment for segment in path.split("/") if segment]
    entry = _parse_entry_value(value)
    try:
        action = add_entry_to_pom(file, segments, key or [], entry, replace_if_found=replace)
    except BuildPatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error
    typer.echo(f"{action.value} {'/'.join(segments)}")


if __name__ == "__main__":
    app()
