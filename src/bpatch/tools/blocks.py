"""Merge literal lines into named brace-delimited blocks of a build script.

A block such as ``plugins { ... }`` is located with a regular expression built
from a template, the desired lines that are not yet present are appended to
its body, and the block is written back in place (or appended to the end of
the document when it does not exist yet). Documents with CRLF line endings or
a leading byte order mark are matched the same way and keep both on rewrite.

The default template understands a flat subset of the Groovy syntax:

* Presence is a plain substring test against the current body. A short item
  that is contained in a longer existing line is therefore reported as
  present; this is accepted behaviour rather than an oversight.
* The first block with the given name wins, wherever it is nested. A
  ``dependencies {`` inside ``buildscript { ... }`` that precedes the
  top-level one receives the items.
* A body ends at the first line whose last non-blank character is ``}``, so
  blocks with nested closures are cut short. Such blocks should be merged
  with ``overwrite=False``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Pattern, Sequence, Tuple

from .files import BYTE_ORDER_MARK

NAME_PLACEHOLDER = "{name}"
DEFAULT_BLOCK_TEMPLATE = r"^[ \t\ufeff]*{name}\s*\{\s*([\s\S]*?)\s*\}[ \t\r]*$"
INDENT = "    "

_BREAK_LINE = "\n"
_CRLF = "\r\n"
_ITEM_SEPARATOR = "\n "


@dataclass(frozen=True, slots=True)
class BlockSpec:
    """Desired content of a single named block."""

    name: str
    items: Tuple[str, ...]
    overwrite: bool = True
    pattern: str = DEFAULT_BLOCK_TEMPLATE


@dataclass(frozen=True, slots=True)
class BlockMatch:
    """Location of a block inside a document."""

    body: str
    exists: bool
    span: Tuple[int, int] | None = None


@dataclass(frozen=True, slots=True)
class BlockMergeResult:
    """Outcome of merging items into a block."""

    text: str
    changed: bool
    added: Tuple[str, ...] = ()
    suppressed: bool = False


def compile_block_pattern(name: str, template: str = DEFAULT_BLOCK_TEMPLATE) -> Pattern[str]:
    """Compile ``template`` with ``name`` substituted for the placeholder."""

    if NAME_PLACEHOLDER not in template:
        raise ValueError(f"Block pattern template must contain {NAME_PLACEHOLDER!r}: {template!r}")
    return re.compile(template.replace(NAME_PLACEHOLDER, re.escape(name)), re.MULTILINE)


def find_block(document: str, pattern: Pattern[str]) -> BlockMatch:
    """Return the body of the first block matched by ``pattern``."""

    match = pattern.search(document)
    if match is None:
        return BlockMatch(body="", exists=False)
    body = match.group(1) if match.re.groups else ""
    return BlockMatch(body=body or "", exists=True, span=match.span())


def add_items_to_block(body: str, items: Iterable[str]) -> Tuple[str, Tuple[str, ...]]:
    """Append the items missing from ``body`` and report which were added."""

    merged = body
    added: list[str] = []
    for item in (entry.strip() for entry in items):
        if not item or item in merged:
            continue
        merged = f"{merged}{_ITEM_SEPARATOR}{item}"
        added.append(item)
    return merged, tuple(added)


def render_block(name: str, body: str) -> str:
    """Format ``body`` as ``name { ... }`` with every line re-indented."""

    lines = [f"{INDENT}{line.strip()}" for line in body.strip().split(_BREAK_LINE) if line.strip()]
    if not lines:
        return f"{name} {{{_BREAK_LINE}}}"
    return f"{name} {{{_BREAK_LINE}{_BREAK_LINE.join(lines)}{_BREAK_LINE}}}"


def merge_block(
    document: str,
    name: str,
    items: Sequence[str],
    *,
    pattern: Pattern[str] | str | None = None,
    overwrite: bool = True,
) -> BlockMergeResult:
    """Merge ``items`` into block ``name`` of ``document``.

    Existing blocks are rewritten in place; a missing block is appended after a
    blank line. When ``overwrite`` is false an existing block is never touched,
    even if some items are missing from it. The rewritten document keeps the
    byte order mark and CRLF line endings of ``document``.
    """

    if pattern is None or isinstance(pattern, str):
        compiled = compile_block_pattern(name, pattern or DEFAULT_BLOCK_TEMPLATE)
    else:
        compiled = pattern

    bom = BYTE_ORDER_MARK if document.startswith(BYTE_ORDER_MARK) else ""
    line_ending = _CRLF if _CRLF in document else _BREAK_LINE
    source = document[len(bom):].replace(_CRLF, _BREAK_LINE)

    located = find_block(source, compiled)
    if located.exists and not overwrite:
        return BlockMergeResult(text=document, changed=False, suppressed=True)

    body, added = add_items_to_block(located.body, items)
    if not added:
        return BlockMergeResult(text=document, changed=False)

    block = render_block(name, body)
    if located.exists and located.span is not None:
        start, end = located.span
        text = f"{source[:start]}{block}{source[end:]}"
    else:
        head = source.rstrip()
        text = f"{head}{_BREAK_LINE * 2}{block}{_BREAK_LINE}" if head else f"{block}{_BREAK_LINE}"
    text = bom + text.replace(_BREAK_LINE, line_ending)
    return BlockMergeResult(text=text, changed=True, added=added)


def merge_block_spec(document: str, spec: BlockSpec) -> BlockMergeResult:
    """Merge a :class:`BlockSpec` into ``document``."""

    return merge_block(
        document,
        spec.name,
        spec.items,
        pattern=spec.pattern,
        overwrite=spec.overwrite,
    )


__all__ = [
    "BlockMatch",
    "BlockMergeResult",
    "BlockSpec",
    "DEFAULT_BLOCK_TEMPLATE",
    "INDENT",
    "add_items_to_block",
    "compile_block_pattern",
    "find_block",
    "merge_block",
    "merge_block_spec",
    "render_block",
]
