"""Apply block merges to a Gradle build script on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from .blocks import BlockMergeResult, BlockSpec, merge_block_spec
from .files import read_text, write_text

LOGGER = logging.getLogger(__name__)


def update_gradle_build_file(path: Path, spec: BlockSpec) -> BlockMergeResult:
    """Merge ``spec`` into the build script at ``path``.

    The file is only rewritten when the merge changed its content.
    """

    content = read_text(path)
    result = merge_block_spec(content, spec)
    if result.suppressed:
        LOGGER.debug("Block %s already present in %s; left untouched", spec.name, path)
    elif result.changed:
        write_text(path, result.text)
        LOGGER.debug("Added %s to block %s in %s", ", ".join(result.added), spec.name, path)
    return result


def apply_gradle_blocks(path: Path, specs: Iterable[BlockSpec]) -> List[BlockMergeResult]:
    """Merge every block in order, re-reading the file before each merge."""

    return [update_gradle_build_file(path, spec) for spec in specs]


__all__ = ["apply_gradle_blocks", "update_gradle_build_file"]
