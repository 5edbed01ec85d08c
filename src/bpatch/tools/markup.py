"""Conversion between XML build descriptors and nested node mappings.

Every element maps to a list of child values, even when an element occurs
once, so callers can treat singleton and repeatable nodes the same way:

* a text-only element becomes its text (``"4.0.0"``), an empty one ``""``;
* any other element becomes a mapping with attributes under ``"$"``, its own
  text under ``"_"`` and one list per child tag in document order.

Namespace declarations are preserved as ``xmlns`` attributes and prefixed names
keep their prefix, so ``pom.xml`` files survive a parse/render round trip.
Comments and processing instructions are not preserved.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .errors import MalformedDocumentError
from .files import BYTE_ORDER_MARK, read_text, write_text
from .tree import StructuredDocument

ATTR_KEY = "$"
TEXT_KEY = "_"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

LOGGER = logging.getLogger(__name__)


class _Converter:
    """Turns an ElementTree into the nested mapping representation."""

    def __init__(self, declarations: Dict[int, List[Tuple[str, str]]], prefixes: Dict[str, str]) -> None:
        self._declarations = declarations
        self._prefixes = prefixes

    def qualify(self, name: str) -> str:
        if not name.startswith("{"):
            return name
        uri, local = name[1:].split("}", 1)
        prefix = self._prefixes.get(uri, "")
        return f"{prefix}:{local}" if prefix else local

    def convert(self, element: ET.Element) -> Any:
        attrs: Dict[str, str] = {}
        for prefix, uri in self._declarations.get(id(element), ()):
            attrs[f"xmlns:{prefix}" if prefix else "xmlns"] = uri
        for key, value in element.attrib.items():
            attrs[self.qualify(key)] = value

        children: Dict[str, List[Any]] = {}
        text_parts = [element.text or ""]
        for child in element:
            text_parts.append(child.tail or "")
            if not isinstance(child.tag, str):
                continue
            children.setdefault(self.qualify(child.tag), []).append(self.convert(child))

        text = "".join(text_parts)
        if not attrs and not children:
            return text if text.strip() else ""

        node: Dict[str, Any] = {}
        if attrs:
            node[ATTR_KEY] = attrs
        if text.strip():
            node[TEXT_KEY] = text.strip()
        node.update(children)
        return node


def parse_markup(text: str) -> StructuredDocument:
    """Parse XML ``text`` into a :data:`StructuredDocument`."""

    parser = ET.XMLPullParser(events=("start-ns", "start"))
    events: List[Tuple[str, Any]] = []
    try:
        parser.feed(text[1:] if text.startswith(BYTE_ORDER_MARK) else text)
        events.extend(parser.read_events())
        parser.close()
        events.extend(parser.read_events())
    except ET.ParseError as error:
        raise MalformedDocumentError(
            f"Failed to parse markup document: {error}",
            details={"position": getattr(error, "position", None)},
        ) from error

    declarations: Dict[int, List[Tuple[str, str]]] = {}
    prefixes: Dict[str, str] = {_XML_NAMESPACE: "xml"}
    pending: List[Tuple[str, str]] = []
    root: ET.Element | None = None
    for event, payload in events:
        if event == "start-ns":
            prefix, uri = payload
            pending.append((prefix, uri))
            prefixes.setdefault(uri, prefix)
        elif event == "start":
            if root is None:
                root = payload
            if pending:
                declarations[id(payload)] = pending
                pending = []

    if root is None:
        raise MalformedDocumentError("Markup document has no root element.")

    converter = _Converter(declarations, prefixes)
    return {converter.qualify(root.tag): [converter.convert(root)]}


def to_node(value: Any) -> Any:
    """Expand a compact mapping into the node-list shape.

    ``{"groupId": "junit", "goals": {"goal": "report"}}`` becomes
    ``{"groupId": ["junit"], "goals": [{"goal": ["report"]}]}``. Scalars are
    returned unchanged, attribute and text keys are copied as they are.
    """

    if not isinstance(value, Mapping):
        return value
    node: Dict[str, Any] = {}
    for key, child in value.items():
        if key in (ATTR_KEY, TEXT_KEY):
            node[key] = child
        else:
            node[key] = [to_node(item) for item in _as_list(child)]
    return node


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_list(value: Any) -> Iterable[Any]:
    return value if isinstance(value, list) else [value]


def _build_element(name: str, value: Any) -> ET.Element:
    element = ET.Element(name)
    if not isinstance(value, Mapping):
        element.text = _scalar_text(value) or None
        return element

    for key, child in value.items():
        if key == ATTR_KEY:
            for attr_name, attr_value in child.items():
                element.set(str(attr_name), _scalar_text(attr_value))
        elif key == TEXT_KEY:
            element.text = _scalar_text(child) or None
        else:
            for item in _as_list(child):
                element.append(_build_element(key, item))
    return element


def render_markup(document: Mapping[str, Any]) -> str:
    """Render a :data:`StructuredDocument` back into XML text."""

    if len(document) != 1:
        raise MalformedDocumentError(
            f"Markup document must have exactly one root element, found {len(document)}.",
            details={"roots": list(document)},
        )
    ((root_name, root_value),) = document.items()
    values = list(_as_list(root_value))
    if len(values) != 1:
        raise MalformedDocumentError(
            f"Root element {root_name!r} must have exactly one value, found {len(values)}.",
        )

    root = _build_element(root_name, values[0])
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return f"{XML_DECLARATION}\n{body}\n"


def load_markup_file(path: Path) -> StructuredDocument:
    """Read and parse the markup descriptor at ``path``."""

    text = read_text(path)
    try:
        return parse_markup(text)
    except MalformedDocumentError as error:
        error.details.setdefault("path", Path(path).as_posix())
        raise MalformedDocumentError(f"{path}: {error}", details=error.details) from error


def write_markup_file(path: Path, document: Mapping[str, Any]) -> None:
    """Render ``document`` and write it to ``path``."""

    write_text(path, render_markup(document))
    LOGGER.debug("Wrote markup descriptor %s", path)


__all__ = [
    "ATTR_KEY",
    "TEXT_KEY",
    "XML_DECLARATION",
    "load_markup_file",
    "parse_markup",
    "render_markup",
    "to_node",
    "write_markup_file",
]
