#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from dataclasses import dataclass
from xml.etree.ElementTree import Element, ParseError, fromstring

from amz_aws_core.xmlutils import find_child, find_text
from amz_core.classifier import THROTTLING_ERROR_CODES, is_service_error_retryable
from amz_core.exceptions import ServiceError
from amz_http.aio import HTTPResponse

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class AutoScalingError(ServiceError):
    """An error response from the scaling-group service."""

    error_type: str = ""
    """Who the service blames for the error, ``Sender`` or ``Receiver``."""


def parse_autoscaling_error(response: HTTPResponse, body: bytes) -> AutoScalingError:
    """Build an :py:class:`AutoScalingError` from a non-success response.

    The body is expected to be an ``<ErrorResponse>`` document. Only its first
    ``<Error>`` is used.
    """
    status = response.status
    document: Element | None = None
    if body:
        try:
            document = fromstring(body)
        except ParseError:
            logger.debug("Error response for status %s is not XML: %r", status, body)

    code = message = error_type = request_id = ""
    if document is not None:
        request_id = find_text(document, "RequestId") or find_text(
            document, "RequestID"
        )
        error = find_child(document, "Error")
        if error is not None:
            code = find_text(error, "Code")
            message = find_text(error, "Message")
            error_type = find_text(error, "Type")
    if not message:
        message = f"HTTP response '{status}'"

    return AutoScalingError(
        message,
        status=status,
        code=code,
        error_type=error_type,
        request_id=request_id or response.header("x-amzn-requestid"),
        headers={f.name.lower(): f.as_string() for f in response.fields},
        fault="server" if status >= 500 or error_type == "Receiver" else "client",
        is_retry_safe=is_service_error_retryable(
            status=status, code=code, message=message
        ),
        is_throttling_error=status == 429 or code in THROTTLING_ERROR_CODES,
    )
