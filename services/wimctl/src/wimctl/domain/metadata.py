from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import TypeAlias

JsonScalar: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = JsonScalar | dict[str, "JsonValue"] | list["JsonValue"]
JsonDict: TypeAlias = dict[str, JsonValue]

ATTRS_KEY = "$"
TEXT_KEY = "_"

_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def _element_to_value(element: ET.Element) -> JsonValue:
    children = list(element)
    # text around child elements is concatenated untrimmed
    text = "".join([element.text or "", *(child.tail or "" for child in children)])
    if not element.attrib and not children:
        return text
    node: JsonDict = {}
    if element.attrib:
        node[ATTRS_KEY] = {str(k): str(v) for k, v in element.attrib.items()}
    if text.strip():
        node[TEXT_KEY] = text
    for child in children:
        bucket = node.setdefault(child.tag, [])
        if isinstance(bucket, list):
            bucket.append(_element_to_value(child))
    return node


def strip_preamble(xml_text: str) -> str:
    return _DECLARATION.sub("", xml_text.lstrip("\ufeff"), count=1)


def parse_wim_xml(xml_text: str) -> JsonDict:
    """Convert WIM XML metadata into nested dicts and lists.

    The root element is keyed by its tag. Repeated or single child elements
    always land in a list, attributes under ``"$"`` and mixed text under
    ``"_"``. Leaf elements without attributes collapse to their text.

    Raises ``xml.etree.ElementTree.ParseError`` on malformed input.
    """
    root = ET.fromstring(strip_preamble(xml_text))
    return {root.tag: _element_to_value(root)}


def _first_text(node: JsonDict, key: str) -> str:
    values = node.get(key)
    if isinstance(values, list) and values:
        first = values[0]
        if isinstance(first, dict):
            first = first.get(TEXT_KEY, "")
        return str(first).strip()
    return ""


def summarize_images(metadata: JsonDict) -> list[dict[str, str]]:
    """One row per ``IMAGE`` element of a parsed ``WIM`` document."""
    wim = metadata.get("WIM")
    if not isinstance(wim, dict):
        return []
    rows: list[dict[str, str]] = []
    images = wim.get("IMAGE")
    for image in images if isinstance(images, list) else []:
        if not isinstance(image, dict):
            continue
        attrs = image.get(ATTRS_KEY)
        rows.append(
            {
                "index": str(attrs.get("INDEX", "")) if isinstance(attrs, dict) else "",
                "name": _first_text(image, "NAME"),
                "dirs": _first_text(image, "DIRCOUNT"),
                "files": _first_text(image, "FILECOUNT"),
                "bytes": _first_text(image, "TOTALBYTES"),
            }
        )
    return rows
