#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import datetime
import re
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from enum import Enum
from xml.etree.ElementTree import Element, SubElement

from amz_aws_core.xmlutils import add_text
from amz_core.exceptions import SerializationError

STANDARD = "STANDARD"
STANDARD_IA = "STANDARD_IA"
GLACIER = "GLACIER"

_RESTORE_RE = re.compile(r'ongoing-request="(true|false)"(, expiry-date="([^"]*)")?')


class Tier(Enum):
    """How fast an archived object is restored."""

    STANDARD = "Standard"
    EXPEDITED = "Expedited"
    BULK = "Bulk"


def restore_request(days: int, tier: Tier) -> Element:
    root = Element("RestoreRequest")
    add_text(root, "Days", days)
    add_text(SubElement(root, "GlacierJobParameters"), "Tier", tier.value)
    return root


@dataclass(kw_only=True)
class RestoreStatus:
    """Where an archived object is in being restored, from its ``HEAD`` headers."""

    ongoing_request: bool = False
    expiry_date: datetime.datetime | None = None
    """When the restored copy is removed. None if there is no restored copy."""

    storage_class: str = STANDARD

    @property
    def is_being_restored(self) -> bool:
        return self.ongoing_request

    @property
    def has_been_restored(self) -> bool:
        return not self.ongoing_request and self.expiry_date is not None

    @classmethod
    def from_headers(cls, headers: dict[str, str]) -> "RestoreStatus":
        """Build a status from lower-cased response headers.

        A missing storage class means ``STANDARD``.
        """
        restore = headers.get("x-amz-restore", "")
        status = parse_restore_header(restore) if restore else cls()
        status.storage_class = headers.get("x-amz-storage-class") or STANDARD
        return status


def parse_restore_header(value: str) -> RestoreStatus:
    """Parse an ``x-amz-restore`` header.

    ``ongoing-request="false", expiry-date="Fri, 23 Dec 2012 00:00:00 GMT"``

    :raises SerializationError: If the value does not have that form.
    """
    match = _RESTORE_RE.search(value)
    if match is None:
        raise SerializationError(f"Unable to parse x-amz-restore header: {value!r}")
    expiry = None
    if match.group(3):
        try:
            expiry = parsedate_to_datetime(match.group(3))
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Unable to parse restore expiry date: {match.group(3)!r}"
            ) from e
    return RestoreStatus(ongoing_request=match.group(1) == "true", expiry_date=expiry)
