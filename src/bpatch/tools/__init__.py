"""Patch tools for brace-delimited and markup build descriptors."""

from .blocks import BlockMergeResult, BlockSpec, merge_block, merge_block_spec
from .commands import CommandRunner, run_command
from .errors import (
    BuildPatchError,
    CommandError,
    DocumentNotFoundError,
    InvalidMergeTargetError,
    MalformedDocumentError,
    SettingsError,
    UnsupportedConfigurationError,
)
from .gradle import apply_gradle_blocks, update_gradle_build_file
from .markup import load_markup_file, parse_markup, render_markup, to_node, write_markup_file
from .pom import add_entry_to_pom
from .tree import EntryMergeAction, find_matching_node, leaf_text, merge_entry, nodes_match, resolve_path

__all__ = [
    "BlockMergeResult",
    "BlockSpec",
    "BuildPatchError",
    "CommandError",
    "CommandRunner",
    "DocumentNotFoundError",
    "EntryMergeAction",
    "InvalidMergeTargetError",
    "MalformedDocumentError",
    "SettingsError",
    "UnsupportedConfigurationError",
    "add_entry_to_pom",
    "apply_gradle_blocks",
    "find_matching_node",
    "leaf_text",
    "load_markup_file",
    "merge_block",
    "merge_block_spec",
    "merge_entry",
    "nodes_match",
    "parse_markup",
    "render_markup",
    "resolve_path",
    "run_command",
    "to_node",
    "update_gradle_build_file",
    "write_markup_file",
]
