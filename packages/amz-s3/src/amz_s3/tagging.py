#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from xml.etree.ElementTree import Element, SubElement

from amz_aws_core.xmlutils import add_text, find_child, find_text, iter_children


def tagging_document(tags: Mapping[str, str]) -> Element:
    """Build a ``<Tagging>`` document with the tags sorted by key."""
    root = Element("Tagging")
    tag_set = SubElement(root, "TagSet")
    for key in sorted(tags):
        tag = SubElement(tag_set, "Tag")
        add_text(tag, "Key", key)
        add_text(tag, "Value", tags[key])
    return root


def parse_tagging(document: Element) -> dict[str, str]:
    tag_set = find_child(document, "TagSet")
    if tag_set is None:
        return {}
    return {
        find_text(tag, "Key"): find_text(tag, "Value")
        for tag in iter_children(tag_set, "Tag")
    }
