#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from enum import Enum
from typing import Self
from xml.etree.ElementTree import Element, SubElement

from amz_aws_core.xmlutils import (
    add_text,
    find_bool,
    find_child,
    find_int,
    find_text,
    iter_children,
)

SSE_HEADER = "x-amz-server-side-encryption"
S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"


class ACL(Enum):
    """Canned access control lists."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AUTHENTICATED_READ = "authenticated-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"


@dataclass(kw_only=True)
class Owner:
    id: str = ""
    display_name: str = ""

    @classmethod
    def from_element(cls, element: Element | None) -> Self:
        if element is None:
            return cls()
        return cls(
            id=find_text(element, "ID"),
            display_name=find_text(element, "DisplayName"),
        )


@dataclass(kw_only=True)
class Key:
    """An object stored in a bucket, as listed."""

    key: str
    last_modified: str = ""
    size: int = 0
    etag: str = ""
    """The hex-encoded MD5 of the contents, surrounded with double quotes."""

    storage_class: str = ""
    owner: Owner = field(default_factory=Owner)

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            key=find_text(element, "Key"),
            last_modified=find_text(element, "LastModified"),
            size=find_int(element, "Size"),
            etag=find_text(element, "ETag"),
            storage_class=find_text(element, "StorageClass"),
            owner=Owner.from_element(find_child(element, "Owner")),
        )


def _common_prefixes(element: Element) -> list[str]:
    return [
        find_text(prefixes, "Prefix")
        for prefixes in iter_children(element, "CommonPrefixes")
    ]


@dataclass(kw_only=True)
class ListResp:
    """One page of a bucket listing."""

    name: str = ""
    prefix: str = ""
    delimiter: str = ""
    marker: str = ""
    next_marker: str = ""
    max_keys: int = 0
    is_truncated: bool = False
    """More keys and prefixes remain after this page."""

    contents: list[Key] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            name=find_text(element, "Name"),
            prefix=find_text(element, "Prefix"),
            delimiter=find_text(element, "Delimiter"),
            marker=find_text(element, "Marker"),
            next_marker=find_text(element, "NextMarker"),
            max_keys=find_int(element, "MaxKeys"),
            is_truncated=find_bool(element, "IsTruncated"),
            contents=[Key.from_element(e) for e in iter_children(element, "Contents")],
            common_prefixes=_common_prefixes(element),
        )


@dataclass(kw_only=True)
class Version:
    """One version of an object."""

    key: str
    version_id: str = ""
    is_latest: bool = False
    last_modified: str = ""
    etag: str = ""
    size: int = 0
    owner: Owner = field(default_factory=Owner)
    storage_class: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            key=find_text(element, "Key"),
            version_id=find_text(element, "VersionId"),
            is_latest=find_bool(element, "IsLatest"),
            last_modified=find_text(element, "LastModified"),
            etag=find_text(element, "ETag"),
            size=find_int(element, "Size"),
            owner=Owner.from_element(find_child(element, "Owner")),
            storage_class=find_text(element, "StorageClass"),
        )


@dataclass(kw_only=True)
class VersionsResp:
    """One page of a version listing."""

    name: str = ""
    prefix: str = ""
    key_marker: str = ""
    version_id_marker: str = ""
    max_keys: int = 0
    delimiter: str = ""
    is_truncated: bool = False
    versions: list[Version] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            name=find_text(element, "Name"),
            prefix=find_text(element, "Prefix"),
            key_marker=find_text(element, "KeyMarker"),
            version_id_marker=find_text(element, "VersionIdMarker"),
            max_keys=find_int(element, "MaxKeys"),
            delimiter=find_text(element, "Delimiter"),
            is_truncated=find_bool(element, "IsTruncated"),
            versions=[
                Version.from_element(e) for e in iter_children(element, "Version")
            ],
            common_prefixes=_common_prefixes(element),
        )


@dataclass(kw_only=True)
class CopyObjectResult:
    etag: str = ""
    last_modified: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            etag=find_text(element, "ETag"),
            last_modified=find_text(element, "LastModified"),
        )


@dataclass(kw_only=True)
class Options:
    """Optional headers for storing an object."""

    sse: bool = False
    """Request server-side encryption with AES256."""

    meta: dict[str, list[str]] = field(default_factory=dict)
    """User metadata, sent as ``x-amz-meta-<name>`` headers."""

    content_encoding: str = ""
    cache_control: str = ""
    redirect_location: str = ""
    content_md5: str = ""

    def add_headers(self, headers: dict[str, str | list[str]]) -> None:
        if self.sse:
            headers[SSE_HEADER] = "AES256"
        if self.content_encoding:
            headers["Content-Encoding"] = self.content_encoding
        if self.cache_control:
            headers["Cache-Control"] = self.cache_control
        if self.content_md5:
            headers["Content-MD5"] = self.content_md5
        if self.redirect_location:
            headers["x-amz-website-redirect-location"] = self.redirect_location
        for name, values in self.meta.items():
            headers[f"x-amz-meta-{name}"] = list(values)


@dataclass(kw_only=True)
class CopyOptions(Options):
    metadata_directive: str = ""
    """``COPY`` or ``REPLACE``."""

    content_type: str = ""

    def add_headers(self, headers: dict[str, str | list[str]]) -> None:
        super().add_headers(headers)
        if self.metadata_directive:
            headers["x-amz-metadata-directive"] = self.metadata_directive
        if self.content_type:
            headers["Content-Type"] = self.content_type


@dataclass(kw_only=True)
class Object:
    """An object, and optionally one of its versions, to delete."""

    key: str
    version_id: str = ""


@dataclass(kw_only=True)
class Delete:
    """A batch of up to 1000 objects to delete."""

    objects: list[Object] = field(default_factory=list)
    quiet: bool = False
    """Only report the objects that could not be deleted."""

    def to_element(self) -> Element:
        root = Element("Delete")
        if self.quiet:
            add_text(root, "Quiet", "true")
        for obj in self.objects:
            element = SubElement(root, "Object")
            add_text(element, "Key", obj.key)
            if obj.version_id:
                add_text(element, "VersionId", obj.version_id)
        return root


@dataclass(kw_only=True)
class RoutingRule:
    condition_key_prefix_equals: str
    redirect_replace_key_prefix_with: str = ""
    redirect_replace_key_with: str = ""


@dataclass(kw_only=True)
class WebsiteConfiguration:
    index_document_suffix: str
    error_document_key: str = ""
    routing_rules: list[RoutingRule] | None = None

    def to_element(self) -> Element:
        root = Element("WebsiteConfiguration", xmlns=S3_NAMESPACE)
        add_text(SubElement(root, "IndexDocument"), "Suffix", self.index_document_suffix)
        add_text(SubElement(root, "ErrorDocument"), "Key", self.error_document_key)
        if self.routing_rules is not None:
            rules = SubElement(root, "RoutingRules")
            for rule in self.routing_rules:
                element = SubElement(rules, "RoutingRule")
                add_text(
                    SubElement(element, "Condition"),
                    "KeyPrefixEquals",
                    rule.condition_key_prefix_equals,
                )
                redirect = SubElement(element, "Redirect")
                if rule.redirect_replace_key_prefix_with:
                    add_text(
                        redirect,
                        "ReplaceKeyPrefixWith",
                        rule.redirect_replace_key_prefix_with,
                    )
                if rule.redirect_replace_key_with:
                    add_text(
                        redirect, "ReplaceKeyWith", rule.redirect_replace_key_with
                    )
        return root
