"""Error taxonomy shared by the build-descriptor patching tools."""

from __future__ import annotations

from typing import Any, Mapping


class BuildPatchError(RuntimeError):
    """Base error raised when a build descriptor cannot be patched."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class DocumentNotFoundError(BuildPatchError):
    """Raised when the target descriptor does not exist on disk."""


class MalformedDocumentError(BuildPatchError):
    """Raised when a markup descriptor cannot be parsed."""


class InvalidMergeTargetError(BuildPatchError):
    """Raised when an entry merge is attempted without a resolved node list."""


class UnsupportedConfigurationError(BuildPatchError):
    """Raised when no merge rules apply to the requested project."""


class CommandError(BuildPatchError):
    """Raised when an external build-tool command exits unsuccessfully."""


class SettingsError(BuildPatchError):
    """Raised when the project settings file is unreadable or invalid."""


__all__ = [
    "BuildPatchError",
    "CommandError",
    "DocumentNotFoundError",
    "InvalidMergeTargetError",
    "MalformedDocumentError",
    "SettingsError",
    "UnsupportedConfigurationError",
]
