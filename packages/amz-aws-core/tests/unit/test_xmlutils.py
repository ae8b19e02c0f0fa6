#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from xml.etree.ElementTree import Element

import pytest
from amz_aws_core.xmlutils import (
    add_text,
    find_bool,
    find_int,
    find_text,
    iter_children,
    local_name,
    parse_document,
    serialize,
)
from amz_core.exceptions import SerializationError

DOCUMENT = b"""<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>bucket</Name>
  <MaxKeys>1000</MaxKeys>
  <IsTruncated>true</IsTruncated>
  <Contents><Key>a</Key></Contents>
  <Contents><Key>b</Key></Contents>
</ListBucketResult>"""


def test_lookups_ignore_namespaces() -> None:
    root = parse_document(DOCUMENT, "ListBucketResult")
    assert local_name(root.tag) == "ListBucketResult"
    assert find_text(root, "Name") == "bucket"
    assert find_text(root, "Marker", "none") == "none"
    assert find_int(root, "MaxKeys") == 1000
    assert find_int(root, "Missing", 7) == 7
    assert find_bool(root, "IsTruncated")
    assert [find_text(c, "Key") for c in iter_children(root, "Contents")] == ["a", "b"]


def test_wrong_root_fails() -> None:
    with pytest.raises(SerializationError, match="Expected a Tagging document"):
        parse_document(DOCUMENT, "Tagging")


def test_invalid_xml_fails() -> None:
    with pytest.raises(SerializationError):
        parse_document(b"<unclosed>")


def test_non_integer_fails() -> None:
    root = Element("Root")
    add_text(root, "Count", "many")
    with pytest.raises(SerializationError, match="Count"):
        find_int(root, "Count")


def test_serialize_adds_declaration() -> None:
    root = Element("Tagging")
    add_text(root, "Count", 3)
    assert serialize(root) == (
        b'<?xml version="1.0" encoding="UTF-8"?>\n'
        b"<Tagging><Count>3</Count></Tagging>"
    )
