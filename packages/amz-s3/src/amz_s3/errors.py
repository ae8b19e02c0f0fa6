#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from dataclasses import dataclass
from xml.etree.ElementTree import Element, ParseError, fromstring

from amz_aws_core.xmlutils import find_text
from amz_core.classifier import THROTTLING_ERROR_CODES, is_service_error_retryable
from amz_core.exceptions import ServiceError
from amz_http.aio import HTTPResponse

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class S3Error(ServiceError):
    """An error response from object storage."""

    bucket_name: str = ""
    """The bucket named in the error response, if any."""


def parse_s3_error(response: HTTPResponse, body: bytes) -> S3Error:
    """Build an :py:class:`S3Error` from a non-success response.

    The body is expected to be an ``<Error>`` document. Bodies that are empty or
    not XML still produce an error carrying the status and headers.
    """
    status = response.status
    document: Element | None = None
    if body:
        try:
            document = fromstring(body)
        except ParseError:
            logger.debug("Error response for status %s is not XML: %r", status, body)

    code = message = bucket_name = request_id = host_id = ""
    if document is not None:
        code = find_text(document, "Code")
        message = find_text(document, "Message")
        bucket_name = find_text(document, "BucketName")
        request_id = find_text(document, "RequestId")
        host_id = find_text(document, "HostId")
    if not message:
        message = f"HTTP response '{status}'"

    server = response.header("server")
    return S3Error(
        message,
        status=status,
        code=code,
        bucket_name=bucket_name,
        request_id=request_id or response.header("x-amz-request-id"),
        host_id=host_id or response.header("x-amz-id-2"),
        headers={f.name.lower(): f.as_string() for f in response.fields},
        fault="server" if status >= 500 else "client",
        is_retry_safe=is_service_error_retryable(
            status=status, code=code, message=message, server=server
        ),
        is_throttling_error=status == 429 or code in THROTTLING_ERROR_CODES,
    )
