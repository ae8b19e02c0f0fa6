#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from xml.etree.ElementTree import fromstring

import pytest
from amz_core.exceptions import SerializationError
from amz_s3.lifecycle import (
    Expiration,
    Filter,
    LifecycleConfiguration,
    Rule,
    Transition,
)

ARCHIVE_THEN_DELETE = """\
<LifecycleConfiguration xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
    <Rule>
        <ID>Archive and then delete rule</ID>
        <Filter>
           <Prefix>projectdocs/</Prefix>
        </Filter>
        <Status>Enabled</Status>
       <Transition>
           <Days>30</Days>
           <StorageClass>STANDARD_IA</StorageClass>
        </Transition>
        <Transition>
           <Days>365</Days>
           <StorageClass>GLACIER</StorageClass>
        </Transition>
        <Expiration>
           <Days>3650</Days>
        </Expiration>
    </Rule>
</LifecycleConfiguration>"""


def parse(document: str) -> LifecycleConfiguration:
    return LifecycleConfiguration.from_element(fromstring(document))


def test_parse() -> None:
    configuration = parse(ARCHIVE_THEN_DELETE)

    assert not configuration.is_unclean()
    [rule] = configuration.rules
    assert rule.id == "Archive and then delete rule"
    assert rule.filter is not None
    assert rule.filter.prefix == "projectdocs/"
    assert rule.status == "Enabled"
    assert [t.days for t in rule.transitions] == [30, 365]
    assert [t.storage_class for t in rule.transitions] == ["STANDARD_IA", "GLACIER"]
    assert rule.expiration == Expiration(days=3650)
    assert configuration.check_values() == []


def test_serialize() -> None:
    configuration = LifecycleConfiguration(
        rules=[
            Rule(
                id="Test Lifecycle",
                filter=Filter(prefix="0000/S00"),
                status="Enabled",
                transitions=[Transition(days=2, storage_class="GLACIER")],
            )
        ]
    )
    element = configuration.to_element()
    rule = element.find("Rule")
    assert rule is not None
    assert rule.findtext("ID") == "Test Lifecycle"
    assert rule.findtext("Filter/Prefix") == "0000/S00"
    assert rule.findtext("Status") == "Enabled"
    assert rule.findtext("Transition/Days") == "2"
    assert rule.findtext("Transition/StorageClass") == "GLACIER"
    assert rule.find("Expiration") is None


def test_unknown_elements_are_kept() -> None:
    configuration = parse(
        "<LifecycleConfiguration><Rule><Status>Enabled</Status>"
        "<NoncurrentVersionExpiration><NoncurrentDays>7</NoncurrentDays>"
        "</NoncurrentVersionExpiration>"
        "<Filter><Tag><Key>k</Key><Value>v</Value><Extra/></Tag></Filter>"
        "</Rule></LifecycleConfiguration>"
    )
    assert configuration.is_unclean()
    [rule] = configuration.rules
    assert [e.tag for e in rule.unknown] == ["NoncurrentVersionExpiration"]
    assert rule.filter is not None and rule.filter.tag is not None
    assert [e.tag for e in rule.filter.tag.unknown] == ["Extra"]

    element = configuration.to_element()
    assert element.findtext("Rule/NoncurrentVersionExpiration/NoncurrentDays") == "7"


def test_unclean_only_for_unknown_elements() -> None:
    configuration = parse(
        "<LifecycleConfiguration><Rule><Status>Enabled</Status></Rule>"
        "<Surprise/></LifecycleConfiguration>"
    )
    assert configuration.is_unclean()
    assert not parse(
        "<LifecycleConfiguration><Rule><Status>Enabled</Status></Rule>"
        "</LifecycleConfiguration>"
    ).is_unclean()


def test_check_values() -> None:
    configuration = LifecycleConfiguration(
        rules=[
            Rule(
                status="On",
                transitions=[
                    Transition(days=-1, date="2030-01-01", storage_class="DEEP"),
                    Transition(days=30, storage_class="STANDARD_IA"),
                ],
            )
        ]
    )
    problems = configuration.check_values()
    assert len(problems) == 4
    assert "Enabled" in problems[0]
    assert "both a Date and Days" in problems[1]
    assert "negative" in problems[2]
    assert "StorageClass" in problems[3]


def test_wrong_document() -> None:
    with pytest.raises(SerializationError):
        parse("<Tagging/>")


def test_bad_days() -> None:
    with pytest.raises(SerializationError):
        parse(
            "<LifecycleConfiguration><Rule><Expiration><Days>soon</Days>"
            "</Expiration></Rule></LifecycleConfiguration>"
        )
