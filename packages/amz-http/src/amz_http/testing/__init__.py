#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Shared utilities for testing clients built on amz_http."""

from .mockhttp import MockHTTPClient, MockHTTPClientError
from .utils import create_test_request

__all__ = ("MockHTTPClient", "MockHTTPClientError", "create_test_request")
