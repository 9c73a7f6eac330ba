"""XML codec for TRA VFD payloads.

Outbound payloads are plain mappings turned into a ``<Request>`` document;
inbound XML is turned back into nested dictionaries.
"""

from __future__ import annotations

from typing import Any, Mapping

from lxml import etree

from .errors import ParseError, SerializationError

ROOT_TAG = "Request"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"
# Parsed value of an element with no children, attributes or text.
EMPTY_VALUE = ""


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _new_element(tag: Any) -> etree._Element:
    if not isinstance(tag, str):
        raise SerializationError(f"XML element names must be strings, got {tag!r}")
    try:
        return etree.Element(tag)
    except ValueError as exc:
        raise SerializationError(f"Invalid XML element name: {tag!r}") from exc


def _build_elements(tag: Any, value: Any) -> list[etree._Element]:
    if isinstance(value, (list, tuple)):
        return [element for item in value for element in _build_elements(tag, item)]
    return [_build_element(tag, value)]


def _build_element(tag: Any, value: Any) -> etree._Element:
    element = _new_element(tag)
    if isinstance(value, Mapping):
        for key, child_value in value.items():
            element.extend(_build_elements(key, child_value))
        return element

    try:
        element.text = _to_text(value)
    except ValueError as exc:
        raise SerializationError(f"Value for <{tag}> is not XML compatible") from exc
    return element


def build_request_xml(
    payload: Mapping[str, Any],
    *,
    root_tag: str = ROOT_TAG,
    include_declaration: bool = False,
) -> str:
    """Return ``payload`` serialized as an XML document rooted at ``root_tag``."""

    if not isinstance(payload, Mapping):
        raise SerializationError(
            f"Payload must be a mapping, got {type(payload).__name__}"
        )

    root = _build_element(root_tag, payload)
    xml = etree.tostring(root, encoding="unicode")
    if include_declaration:
        return XML_DECLARATION + xml
    return xml


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _element_to_value(element: etree._Element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    attributes = dict(element.attrib)

    if not children:
        text = element.text or EMPTY_VALUE
        if not attributes:
            return text
        value: dict[str, Any] = {ATTRIBUTES_KEY: attributes}
        if text:
            value[TEXT_KEY] = text
        return value

    result: dict[str, Any] = {}
    if attributes:
        result[ATTRIBUTES_KEY] = attributes

    for child in children:
        name = _local_name(child)
        child_value = _element_to_value(child)
        if name not in result:
            result[name] = child_value
        elif isinstance(result[name], list):
            result[name].append(child_value)
        else:
            result[name] = [result[name], child_value]
    return result


def parse_response_xml(xml: str | bytes) -> dict[str, Any]:
    """Parse an XML document into nested dictionaries keyed by element name.

    The root element itself is not part of the result. Repeated sibling
    elements become lists and attributes are kept under ``"@attributes"``.
    Empty elements parse as ``""``, so an empty mapping and an empty string
    serialize to the same document and both come back as ``""``.
    """

    if xml is None:
        raise ParseError("Empty XML document")
    raw = xml.encode("utf-8") if isinstance(xml, str) else bytes(xml)
    if not raw.strip():
        raise ParseError("Empty XML document")

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(raw, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"Malformed XML document: {exc}") from exc

    value = _element_to_value(root)
    if isinstance(value, dict):
        return value
    return {TEXT_KEY: value} if value else {}


__all__ = [
    "ROOT_TAG",
    "build_request_xml",
    "parse_response_xml",
]
