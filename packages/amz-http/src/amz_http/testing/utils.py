#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from amz_signers import URI, HTTPRequest

from .. import tuples_to_fields


def create_test_request(
    method: str = "GET",
    host: str = "test.example.com",
    path: str | None = None,
    headers: list[tuple[str, str]] | None = None,
    body: bytes = b"",
) -> HTTPRequest:
    """Create a test request.

    :param method: HTTP method (GET, POST, etc.)
    :param host: Host name (e.g., "test.example.com")
    :param path: Optional path (e.g., "/users")
    :param headers: Optional headers as list of (name, value) tuples
    :param body: Request body as bytes
    :return: HTTPRequest instance for testing
    """
    return HTTPRequest(
        destination=URI(host=host, path=path),
        method=method,
        fields=tuples_to_fields(headers or []),
        body=body,
    )
