#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

from amz_http.testing import create_test_request


def test_create_test_request_defaults():
    request = create_test_request()

    assert request.method == "GET"
    assert request.destination.host == "test.example.com"
    assert request.destination.path is None
    assert request.body == b""
    assert len(request.fields) == 0


def test_create_test_request_custom_values():
    request = create_test_request(
        method="POST",
        host="api.example.com",
        path="/users",
        headers=[("Content-Type", "application/xml")],
        body=b"<a/>",
    )

    assert request.method == "POST"
    assert request.destination.build() == "https://api.example.com/users"
    assert request.fields["Content-Type"].as_string() == "application/xml"
