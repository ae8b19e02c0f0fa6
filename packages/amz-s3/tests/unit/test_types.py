#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from xml.etree.ElementTree import fromstring

from amz_aws_core.xmlutils import serialize
from amz_s3 import CopyOptions, Options, RoutingRule, WebsiteConfiguration
from amz_s3.tagging import parse_tagging, tagging_document


def test_options_headers() -> None:
    headers: dict[str, str | list[str]] = {}
    Options(
        sse=True,
        meta={"color": ["red", "blue"]},
        content_encoding="gzip",
        content_md5="abc==",
        redirect_location="/other",
    ).add_headers(headers)
    assert headers == {
        "x-amz-server-side-encryption": "AES256",
        "Content-Encoding": "gzip",
        "Content-MD5": "abc==",
        "x-amz-website-redirect-location": "/other",
        "x-amz-meta-color": ["red", "blue"],
    }


def test_empty_options_add_nothing() -> None:
    headers: dict[str, str | list[str]] = {}
    CopyOptions().add_headers(headers)
    assert headers == {}


def test_website_configuration() -> None:
    document = serialize(
        WebsiteConfiguration(
            index_document_suffix="index.html",
            error_document_key="error.html",
            routing_rules=[
                RoutingRule(
                    condition_key_prefix_equals="docs/",
                    redirect_replace_key_prefix_with="documents/",
                )
            ],
        ).to_element()
    )
    assert document.startswith(b'<?xml version="1.0" encoding="UTF-8"?>\n')
    root = fromstring(document)
    ns = "{http://s3.amazonaws.com/doc/2006-03-01/}"
    assert root.tag == f"{ns}WebsiteConfiguration"
    assert root.findtext(f"{ns}IndexDocument/{ns}Suffix") == "index.html"
    rule = f"{ns}RoutingRules/{ns}RoutingRule"
    assert root.findtext(f"{rule}/{ns}Condition/{ns}KeyPrefixEquals") == "docs/"
    assert (
        root.findtext(f"{rule}/{ns}Redirect/{ns}ReplaceKeyPrefixWith") == "documents/"
    )


def test_tags_sorted_by_key() -> None:
    element = tagging_document({"b": "2", "a": "1", "c": "3"})
    assert [tag.findtext("Key") for tag in element.iter("Tag")] == ["a", "b", "c"]
    assert parse_tagging(element) == {"a": "1", "b": "2", "c": "3"}


def test_empty_tagging() -> None:
    assert parse_tagging(fromstring(b"<Tagging/>")) == {}
