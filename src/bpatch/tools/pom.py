"""Apply keyed entry merges to a Maven ``pom.xml`` on disk."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Sequence

from .markup import load_markup_file, write_markup_file
from .tree import EntryMergeAction, Node, merge_entry, resolve_path

LOGGER = logging.getLogger(__name__)


def add_entry_to_pom(
    path: Path,
    node_path: Sequence[str],
    key_fields: Sequence[str],
    value: Node,
    *,
    replace_if_found: bool = False,
) -> EntryMergeAction:
    """Merge ``value`` into the node list at ``node_path`` of the POM at ``path``.

    ``value`` is copied before insertion so catalog data is never aliased into
    the document. The file is written unless the merge left it unchanged.
    """

    document = load_markup_file(path)
    node_list = resolve_path(document, node_path)
    action = merge_entry(node_list, key_fields, copy.deepcopy(value), replace_if_found=replace_if_found)
    if action is EntryMergeAction.UNCHANGED:
        LOGGER.debug("%s already satisfied in %s", "/".join(node_path), path)
        return action

    write_markup_file(path, document)
    LOGGER.debug("%s %s in %s", action.value, "/".join(node_path), path)
    return action


__all__ = ["add_entry_to_pom"]
