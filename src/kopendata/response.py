"""
Normalisation of upstream payloads into plain Python structures.

Korean open-data feeds answer with either JSON (``{"content": [...]}``) or the
data.go.kr XML envelope (``<response><body><items><item>...``). Both are turned
into nested dicts/lists here so that fetchers only ever deal with one shape.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .exceptions import ParseError

logger = logging.getLogger(__name__)

# Candidate locations of the record list, tried in order
ITEM_PATHS: Sequence[Sequence[str]] = (
    ("response", "body", "items", "item"),
    ("body", "items", "item"),
    ("items", "item"),
    ("content",),
    ("result",),
    ("data",),
)


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    node: Dict[str, Any] = dict(element.attrib)
    for child in children:
        value = _element_to_value(child)
        if child.tag in node:
            existing = node[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[child.tag] = [existing, value]
        else:
            node[child.tag] = value

    text = (element.text or "").strip()
    if text:
        node["#text"] = text
    return node


def parse_xml(text: str) -> Dict[str, Any]:
    """
    Parse an XML document into a nested dict keyed by tag name.

    Repeated sibling tags become lists, attributes become plain keys and
    leaf elements become their stripped text.

    Raises:
        ParseError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(f"Invalid XML response: {e}") from e
    return {root.tag: _element_to_value(root)}


def _walk(document: Any, path: Sequence[str]) -> Any:
    current = document
    for part in path:
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def extract_items(document: Any) -> List[Dict[str, Any]]:
    """
    Pull the record list out of a parsed document.

    A single record is wrapped in a one-element list; empty containers and
    unknown shapes yield an empty list.
    """
    if isinstance(document, list):
        return [item for item in document if isinstance(item, Mapping)]

    if not isinstance(document, Mapping):
        if document not in (None, ""):
            logger.warning(
                f"Cannot extract records from {type(document).__name__} payload"
            )
        return []

    for path in ITEM_PATHS:
        found = _walk(document, path)
        if found is None:
            continue
        if isinstance(found, list):
            return [item for item in found if isinstance(item, Mapping)]
        if isinstance(found, Mapping):
            return [dict(found)]
        # e.g. <items/> parsed to ""
        return []

    logger.warning(f"Unknown response structure with keys: {list(document.keys())}")
    return []


def first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    """Return the first non-blank value among ``keys`` as a stripped string."""
    for key in keys:
        if key not in record:
            continue
        raw = record[key]
        if raw is None or isinstance(raw, (dict, list)):
            continue
        text = str(raw).strip()
        if text:
            return text
    return None


def parse_float(value: Any) -> Optional[float]:
    """Parse a numeric upstream value, returning None for blanks and junk."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number
