#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Helpers for the XML documents exchanged with query and REST-XML services.

Lookups ignore namespaces, since services differ in whether they qualify elements.
"""

from collections.abc import Iterator
from xml.etree.ElementTree import Element, ParseError, SubElement, fromstring, tostring

from amz_core.exceptions import SerializationError

XML_DECLARATION = b'<?xml version="1.0" encoding="UTF-8"?>\n'


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on qualified tags."""
    return tag.rsplit("}", 1)[-1]


def parse_document(body: bytes, root: str | None = None) -> Element:
    """Parse a response body.

    :param root: The expected name of the root element, ignoring namespaces.
    :raises SerializationError: If the body is not XML or has the wrong root.
    """
    try:
        element = fromstring(body)
    except ParseError as e:
        raise SerializationError(f"Response is not valid XML: {e}") from e
    if root is not None and local_name(element.tag) != root:
        raise SerializationError(
            f"Expected a {root} document, got {local_name(element.tag)}"
        )
    return element


def iter_children(element: Element, name: str) -> Iterator[Element]:
    for child in element:
        if local_name(child.tag) == name:
            yield child


def find_child(element: Element, name: str) -> Element | None:
    return next(iter_children(element, name), None)


def find_text(element: Element, name: str, default: str = "") -> str:
    child = find_child(element, name)
    if child is None or child.text is None:
        return default
    return child.text


def find_int(element: Element, name: str, default: int = 0) -> int:
    value = find_text(element, name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise SerializationError(f"{name} is not an integer: {value!r}") from e


def find_bool(element: Element, name: str) -> bool:
    return find_text(element, name).strip().lower() == "true"


def add_text(parent: Element, name: str, value: str | int) -> Element:
    child = SubElement(parent, name)
    child.text = str(value)
    return child


def serialize(root: Element) -> bytes:
    """Render a document with an XML declaration."""
    return XML_DECLARATION + tostring(root, encoding="unicode").encode()
