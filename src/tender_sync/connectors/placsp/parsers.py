"""Parsing utilities for the PLACSP ATOM feed.

The feed is turned into a generic tree (attribute-merging, like the
xml-to-object converters commonly used for ATOM): each element becomes
its text when it has neither attributes nor children, otherwise a dict
holding its attributes, its children (a list when repeated) and its text
under "_". Namespaced names keep the prefix declared in the document,
e.g. "cac:ProcurementProject"; the default ATOM namespace is unprefixed.
"""

import math
import xml.etree.ElementTree as ET
from datetime import date, datetime
from io import BytesIO
from typing import Any, Callable, Iterable, Optional, Sequence

from tender_sync.errors import ParseError

from .constants import (
    CATEGORY_RULES,
    CONTRACT_FOLDER_KEYS,
    DEFAULT_CATEGORY,
    ENTRY,
    FEED_ROOT,
    STATUS_MAP,
)

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d")

_XML_NS = "http://www.w3.org/XML/1998/namespace"


def _namespace_prefixes(content: bytes) -> dict[str, str]:
    """Map namespace URI -> prefix as declared in the document (first declaration wins)."""
    prefixes: dict[str, str] = {_XML_NS: "xml"}
    for _, (prefix, uri) in ET.iterparse(BytesIO(content), events=("start-ns",)):
        prefixes.setdefault(uri, prefix)
    return prefixes


def _name_mapper(prefixes: dict[str, str]) -> Callable[[str], str]:
    def qualified(tag: str) -> str:
        if not tag.startswith("{"):
            return tag
        uri, _, local = tag[1:].partition("}")
        prefix = prefixes.get(uri, "")
        return f"{prefix}:{local}" if prefix else local

    return qualified


def element_to_node(elem: ET.Element, qualified: Callable[[str], str] = lambda t: t) -> Any:
    """Convert an element to a tree node (str or dict), merging attributes as keys."""
    attrs = {qualified(k): v for k, v in elem.attrib.items()}
    children = list(elem)
    text = (elem.text or "").strip()
    if not attrs and not children:
        return text

    node: dict[str, Any] = dict(attrs)
    for child in children:
        key = qualified(child.tag)
        value = element_to_node(child, qualified)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]
    if text:
        node["_"] = text
    return node


def parse_feed(content: bytes | str) -> list[dict[str, Any]]:
    """
    Parse an ATOM document into a list of entry trees.
    Single and repeated <entry> elements both yield a list; no entries yields [].
    Raises ParseError for malformed XML or a root other than <feed>.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        qualified = _name_mapper(_namespace_prefixes(content))
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ParseError(f"Malformed feed document: {e}") from e

    if qualified(root.tag) != FEED_ROOT:
        raise ParseError(f"Unexpected feed root <{qualified(root.tag)}>")

    tree = element_to_node(root, qualified)
    if not isinstance(tree, dict):
        return []
    entries = tree.get(ENTRY)
    if entries is None:
        return []
    if not isinstance(entries, list):
        entries = [entries]
    return [e for e in entries if isinstance(e, dict)]


# -- accessor helpers: never raise, None on any shape mismatch --


def first(value: Any) -> Any:
    """First element of a repeated node, the node itself otherwise."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def node_text(value: Any) -> Optional[str]:
    """Text of a node: plain string, or the '_' text of an element with attributes."""
    value = first(value)
    if isinstance(value, dict):
        value = value.get("_")
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def get_path(node: Any, path: Sequence[str]) -> Any:
    """Walk nested keys, taking the first element wherever a node repeats."""
    current = node
    for key in path:
        current = first(current)
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_text(node: Any, paths: Iterable[Sequence[str]]) -> Optional[str]:
    """Text at the first path that has any."""
    for path in paths:
        text = node_text(get_path(node, path))
        if text:
            return text
    return None


def contract_folder(data: dict[str, Any]) -> Optional[dict[str, Any]]:
    """The entry's contract folder block, under either spelling."""
    for key in CONTRACT_FOLDER_KEYS:
        folder = first(data.get(key))
        if isinstance(folder, dict):
            return folder
    return None


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a feed date (ISO date, ISO datetime or dd/mm/yyyy) to a date."""
    if not value or not str(value).strip():
        return None
    value = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value[:10], fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: Optional[str]) -> Optional[float]:
    """Coerce an amount string to float; None when absent or unparseable."""
    if value is None:
        return None
    try:
        amount = float(str(value).strip())
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def determine_category(code: Optional[str]) -> str:
    """Work category for a CPV code: label of the longest matching prefix rule."""
    if not code:
        return DEFAULT_CATEGORY
    code = str(code).strip()
    best: Optional[tuple[str, str]] = None
    for prefix, label in CATEGORY_RULES:
        if code.startswith(prefix) and (best is None or len(prefix) > len(best[0])):
            best = (prefix, label)
    return best[1] if best else DEFAULT_CATEGORY


def map_status(status_code: Optional[str]) -> str:
    """Record status for a feed status code; unknown codes are treated as active."""
    return STATUS_MAP.get((status_code or "").strip().upper(), "active")
