#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0


class AmzSignersError(Exception):
    """Top-level exception to capture signing-related errors."""


class SigningError(AmzSignersError, ValueError):
    """The request could not be serialized into a canonical form, or the supplied
    credentials cannot be used.

    Signing errors are never retried.
    """

    is_retry_safe: bool | None = False
    retry_after: float | None = None
    is_throttling_error: bool = False
