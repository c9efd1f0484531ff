"""XML parsing and generic flattening.

The parser builds one element tree incrementally from byte chunks.
Flattening turns that tree into plain JSON-like values for the
document-tables conversion.
"""

from __future__ import annotations

from typing import Iterable, Union
from xml.etree.ElementTree import Element, ParseError, XMLParser

from core.errors import PolyloadParseError, PolyloadSchemaError

XmlValue = Union[str, dict[str, "XmlValue"], list["XmlValue"]]


def parse_xml(chunks: Iterable[bytes], file_key: str = "") -> Element:
    """Parse an XML byte stream into its root element.

    Args:
        chunks: Raw byte chunks of the file.
        file_key: File key used in error messages.

    Returns:
        Root element of the document.

    Raises:
        PolyloadParseError: If the document is not well-formed.
    """
    parser = XMLParser()
    try:
        for chunk in chunks:
            parser.feed(chunk)
        return parser.close()
    except ParseError as error:
        raise PolyloadParseError(f"Failed to parse XML '{file_key}': {error}.") from error


def flatten_xml_document(root: Element) -> XmlValue:
    """Return the records found directly under the single root element.

    Repeated sibling tags collapse into an ordered list; a single
    occurrence stays a scalar, so callers must accept both shapes.

    Args:
        root: Root element of a parsed document.

    Returns:
        The value of the root's only child-tag group.

    Raises:
        PolyloadSchemaError: If the root holds zero or several child-tag groups.
    """
    value = element_to_value(root)
    if not isinstance(value, dict) or len(value) != 1:
        group_count = len(value) if isinstance(value, dict) else 0
        raise PolyloadSchemaError(
            f"Expected a single group of records under XML root <{root.tag}>, "
            f"found {group_count}. Split the document or adjust the schema."
        )
    return next(iter(value.values()))


def element_to_value(element: Element) -> XmlValue:
    """Convert one element into a string (leaf) or a mapping of children."""
    children = list(element)
    if not children:
        return (element.text or "").strip()
    output: dict[str, XmlValue] = {}
    for child in children:
        value = element_to_value(child)
        existing = output.get(child.tag)
        if existing is None:
            output[child.tag] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            output[child.tag] = [existing, value]
    return output
