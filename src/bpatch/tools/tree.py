"""Path resolution and keyed entry merging for parsed markup documents.

Documents use the array-of-one convention produced by
:func:`bpatch.tools.markup.parse_markup`: every child value is a list, even
for scalar leaves. For example ``<build><plugins><plugin>...`` becomes::

    {"project": [{"build": [{"plugins": [{"plugin": [{...}, {...}]}]}]}]}

``resolve_path(doc, ["project", "build", "plugins", "plugin"])`` then returns
the ``plugin`` list itself, so entries merged into it land in ``doc``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, MutableMapping, Sequence, Union

from .errors import InvalidMergeTargetError

Node = Union[str, int, float, Dict[str, List[Any]]]
StructuredDocument = Dict[str, List[Node]]

_MISSING = object()


class EntryMergeAction(str, Enum):
    """What :func:`merge_entry` did to the node list."""

    ADDED = "added"
    REPLACED_SCALAR = "replaced_scalar"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


def resolve_path(document: MutableMapping[str, Any], path: Sequence[str]) -> List[Node]:
    """Return the list at ``path``, creating missing segments along the way.

    Missing keys are initialised to empty lists. When a segment resolves to a
    list, descent continues through its first element, which is created as an
    empty mapping if the list is empty. Existing nodes are never removed or
    reordered.
    """

    if not path:
        raise InvalidMergeTargetError("Cannot resolve an empty node path.")

    current: Any = document
    for depth, key in enumerate(path):
        if isinstance(current, list):
            current = _first_container(current, path[:depth])
        if not isinstance(current, MutableMapping):
            raise InvalidMergeTargetError(
                f"Cannot descend into {'/'.join(path[:depth]) or '<root>'}: not an element.",
                details={"path": list(path), "depth": depth},
            )
        if key not in current:
            current[key] = []
        current = current[key]

    if not isinstance(current, list):
        raise InvalidMergeTargetError(
            f"Node {'/'.join(path)} is not a node list.",
            details={"path": list(path)},
        )
    return current


def _first_container(nodes: List[Node], trail: Sequence[str]) -> MutableMapping[str, Any]:
    if not nodes:
        nodes.append({})
    first = nodes[0]
    # Empty elements parse to "", which can safely become an element.
    if isinstance(first, str) and not first.strip():
        first = {}
        nodes[0] = first
    if not isinstance(first, MutableMapping):
        raise InvalidMergeTargetError(
            f"Cannot descend into text node at {'/'.join(trail)}.",
            details={"path": list(trail), "value": first},
        )
    return first


def _first_value(node: MutableMapping[str, Any], key: str) -> Any:
    value = node.get(key, _MISSING)
    if isinstance(value, list):
        return value[0] if value else _MISSING
    return value


def nodes_match(node: Any, key_fields: Sequence[str], candidate: Any) -> bool:
    """Return ``True`` when both mappings agree on every key field.

    Only the first value of each field is compared. A field missing on both
    sides counts as equal; missing on one side does not.
    """

    if not isinstance(node, MutableMapping) or not isinstance(candidate, MutableMapping):
        return False
    return all(_first_value(node, key) == _first_value(candidate, key) for key in key_fields)


def find_matching_node(
    node_list: Sequence[Node],
    key_fields: Sequence[str],
    candidate: Node,
) -> MutableMapping[str, Any] | None:
    """Return the first node in ``node_list`` equivalent to ``candidate``."""

    for node in node_list:
        if nodes_match(node, key_fields, candidate):
            return node  # type: ignore[return-value]
    return None


def leaf_text(value: Any) -> Any:
    """Return ``value`` with scalar leaves spelled as parsed markup spells them.

    Numbers become their decimal text and booleans ``"true"`` or ``"false"``,
    so a candidate built from JSON or YAML compares equal to the parsed node.
    Mappings are updated in place.
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, MutableMapping):
        for key, child in value.items():
            value[key] = [leaf_text(item) for item in child] if isinstance(child, list) else leaf_text(child)
    return value


def merge_entry(
    node_list: List[Node] | None,
    key_fields: Sequence[str],
    candidate: Node,
    *,
    replace_if_found: bool = False,
) -> EntryMergeAction:
    """Insert ``candidate`` into ``node_list`` unless an equivalent entry exists.

    Scalar candidates replace position 0 (singleton leaves such as
    ``testSourceDirectory``); mapping candidates are appended (repeatable
    collections such as ``dependency``). With ``replace_if_found`` the
    candidate's fields are merged into the matched entry in place.
    """

    if node_list is None:
        raise InvalidMergeTargetError(
            "Node list does not exist; resolve the path before merging entries.",
            details={"key_fields": list(key_fields)},
        )

    candidate = leaf_text(candidate)

    match = find_matching_node(node_list, key_fields, candidate)
    if match is None:
        if isinstance(candidate, MutableMapping):
            node_list.append(candidate)
            return EntryMergeAction.ADDED
        if node_list and node_list[0] == candidate:
            return EntryMergeAction.UNCHANGED
        if node_list:
            node_list[0] = candidate
        else:
            node_list.append(candidate)
        return EntryMergeAction.REPLACED_SCALAR

    if not replace_if_found:
        return EntryMergeAction.UNCHANGED

    if all(match.get(key, _MISSING) == value for key, value in candidate.items()):
        return EntryMergeAction.UNCHANGED
    match.update(candidate)
    return EntryMergeAction.UPDATED


__all__ = [
    "EntryMergeAction",
    "Node",
    "StructuredDocument",
    "find_matching_node",
    "leaf_text",
    "merge_entry",
    "nodes_match",
    "resolve_path",
]
