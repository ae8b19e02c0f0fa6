#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Bucket lifecycle configuration documents.

Elements this module does not know are kept in each node's ``unknown`` list and
written back when the configuration is serialized, so a configuration read from a
bucket can be stored again without losing rules set by other tools.
:py:meth:`LifecycleConfiguration.is_unclean` reports whether any were found.
"""

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Self
from xml.etree.ElementTree import Element, SubElement

from amz_aws_core.xmlutils import add_text, local_name
from amz_core.exceptions import SerializationError

from .types import S3_NAMESPACE

RULE_STATUSES = ("Enabled", "Disabled")
TRANSITION_STORAGE_CLASSES = ("STANDARD_IA", "GLACIER")


def _text(element: Element) -> str:
    return element.text or ""


def _int(element: Element) -> int:
    try:
        return int(_text(element))
    except ValueError as e:
        raise SerializationError(
            f"{local_name(element.tag)} is not an integer: {element.text!r}"
        ) from e


def _append_unknown(parent: Element, unknown: list[Element]) -> None:
    for element in unknown:
        parent.append(copy.deepcopy(element))


@dataclass(kw_only=True)
class _Node:
    unknown: list[Element] = field(default_factory=list, repr=False, compare=False)
    """Child elements that were not recognized when parsing."""

    def children(self) -> Iterator["_Node"]:
        return iter(())

    def walk(self) -> Iterator["_Node"]:
        yield self
        for child in self.children():
            yield from child.walk()


@dataclass(kw_only=True)
class Tag(_Node):
    key: str = ""
    value: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        tag = cls()
        for child in element:
            match local_name(child.tag):
                case "Key":
                    tag.key = _text(child)
                case "Value":
                    tag.value = _text(child)
                case _:
                    tag.unknown.append(child)
        return tag

    def to_element(self, parent: Element) -> Element:
        element = SubElement(parent, "Tag")
        add_text(element, "Key", self.key)
        add_text(element, "Value", self.value)
        _append_unknown(element, self.unknown)
        return element


@dataclass(kw_only=True)
class And(_Node):
    """Combines a prefix and a tag in one filter."""

    prefix: str | None = None
    tag: Tag | None = None

    def children(self) -> Iterator[_Node]:
        if self.tag is not None:
            yield self.tag

    @classmethod
    def from_element(cls, element: Element) -> Self:
        node = cls()
        for child in element:
            match local_name(child.tag):
                case "Prefix":
                    node.prefix = _text(child)
                case "Tag":
                    node.tag = Tag.from_element(child)
                case _:
                    node.unknown.append(child)
        return node

    def to_element(self, parent: Element) -> Element:
        element = SubElement(parent, "And")
        if self.prefix is not None:
            add_text(element, "Prefix", self.prefix)
        if self.tag is not None:
            self.tag.to_element(element)
        _append_unknown(element, self.unknown)
        return element


@dataclass(kw_only=True)
class Filter(_Node):
    """Selects the objects a rule applies to."""

    prefix: str | None = None
    tag: Tag | None = None
    and_: And | None = None

    def children(self) -> Iterator[_Node]:
        if self.tag is not None:
            yield self.tag
        if self.and_ is not None:
            yield self.and_

    @classmethod
    def from_element(cls, element: Element) -> Self:
        node = cls()
        for child in element:
            match local_name(child.tag):
                case "Prefix":
                    node.prefix = _text(child)
                case "Tag":
                    node.tag = Tag.from_element(child)
                case "And":
                    node.and_ = And.from_element(child)
                case _:
                    node.unknown.append(child)
        return node

    def to_element(self, parent: Element) -> Element:
        element = SubElement(parent, "Filter")
        if self.prefix is not None:
            add_text(element, "Prefix", self.prefix)
        if self.tag is not None:
            self.tag.to_element(element)
        if self.and_ is not None:
            self.and_.to_element(element)
        _append_unknown(element, self.unknown)
        return element


@dataclass(kw_only=True)
class Transition(_Node):
    """Moves objects to another storage class after a number of days or on a date."""

    days: int | None = None
    date: str | None = None
    storage_class: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        node = cls()
        for child in element:
            match local_name(child.tag):
                case "Days":
                    node.days = _int(child)
                case "Date":
                    node.date = _text(child)
                case "StorageClass":
                    node.storage_class = _text(child)
                case _:
                    node.unknown.append(child)
        return node

    def to_element(self, parent: Element) -> Element:
        element = SubElement(parent, "Transition")
        if self.days is not None:
            add_text(element, "Days", self.days)
        if self.date is not None:
            add_text(element, "Date", self.date)
        add_text(element, "StorageClass", self.storage_class)
        _append_unknown(element, self.unknown)
        return element


@dataclass(kw_only=True)
class Expiration(_Node):
    days: int | None = None
    date: str | None = None

    @classmethod
    def from_element(cls, element: Element) -> Self:
        node = cls()
        for child in element:
            match local_name(child.tag):
                case "Days":
                    node.days = _int(child)
                case "Date":
                    node.date = _text(child)
                case _:
                    node.unknown.append(child)
        return node

    def to_element(self, parent: Element) -> Element:
        element = SubElement(parent, "Expiration")
        if self.days is not None:
            add_text(element, "Days", self.days)
        if self.date is not None:
            add_text(element, "Date", self.date)
        _append_unknown(element, self.unknown)
        return element


@dataclass(kw_only=True)
class Rule(_Node):
    id: str | None = None
    filter: Filter | None = None
    status: str = ""
    """``Enabled`` or ``Disabled``."""

    transitions: list[Transition] = field(default_factory=list)
    expiration: Expiration | None = None

    def children(self) -> Iterator[_Node]:
        if self.filter is not None:
            yield self.filter
        yield from self.transitions
        if self.expiration is not None:
            yield self.expiration

    @classmethod
    def from_element(cls, element: Element) -> Self:
        rule = cls()
        for child in element:
            match local_name(child.tag):
                case "ID":
                    rule.id = _text(child)
                case "Filter":
                    rule.filter = Filter.from_element(child)
                case "Status":
                    rule.status = _text(child)
                case "Transition":
                    rule.transitions.append(Transition.from_element(child))
                case "Expiration":
                    rule.expiration = Expiration.from_element(child)
                case _:
                    rule.unknown.append(child)
        return rule

    def to_element(self, parent: Element) -> Element:
        element = SubElement(parent, "Rule")
        if self.id is not None:
            add_text(element, "ID", self.id)
        if self.filter is not None:
            self.filter.to_element(element)
        add_text(element, "Status", self.status)
        for transition in self.transitions:
            transition.to_element(element)
        if self.expiration is not None:
            self.expiration.to_element(element)
        _append_unknown(element, self.unknown)
        return element


@dataclass(kw_only=True)
class LifecycleConfiguration(_Node):
    rules: list[Rule] = field(default_factory=list)

    def children(self) -> Iterator[_Node]:
        yield from self.rules

    @classmethod
    def from_element(cls, element: Element) -> Self:
        if local_name(element.tag) != "LifecycleConfiguration":
            raise SerializationError(
                f"Expected a LifecycleConfiguration document, got "
                f"{local_name(element.tag)}"
            )
        configuration = cls()
        for child in element:
            if local_name(child.tag) == "Rule":
                configuration.rules.append(Rule.from_element(child))
            else:
                configuration.unknown.append(child)
        return configuration

    def to_element(self) -> Element:
        root = Element("LifecycleConfiguration", xmlns=S3_NAMESPACE)
        for rule in self.rules:
            rule.to_element(root)
        _append_unknown(root, self.unknown)
        return root

    def is_unclean(self) -> bool:
        """Whether any element of the configuration was not recognized."""
        return any(node.unknown for node in self.walk())

    def check_values(self) -> list[str]:
        """Describe each value the service would reject. Empty if all are valid."""
        problems: list[str] = []
        for rule in self.rules:
            if rule.status not in RULE_STATUSES:
                problems.append(
                    f"Rule Status must be 'Enabled' or 'Disabled', got: {rule.status!r}"
                )
            for transition in rule.transitions:
                if transition.days is not None and transition.date is not None:
                    problems.append("Transition cannot have both a Date and Days")
                if transition.days is not None and transition.days < 0:
                    problems.append(
                        f"Days cannot be negative, got: {transition.days}"
                    )
                if transition.storage_class not in TRANSITION_STORAGE_CLASSES:
                    problems.append(
                        "StorageClass must be one of ('STANDARD_IA', 'GLACIER'), "
                        f"got: {transition.storage_class!r}"
                    )
        return problems
