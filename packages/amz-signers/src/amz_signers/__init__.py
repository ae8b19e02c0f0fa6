#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Stand-alone Signature Version 4 signing for HTTP requests."""

from ._http import URI, Field, Fields, HTTPRequest
from ._identity import Credentials
from ._io import ByteStream, Payload, Seekable, is_replayable
from .canonical import EMPTY_SHA256_HASH, UNSIGNED_PAYLOAD
from .exceptions import AmzSignersError, SigningError
from .signers import SigningScope, SigV4Signer, format_timestamp

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "EMPTY_SHA256_HASH",
    "UNSIGNED_PAYLOAD",
    "URI",
    "AmzSignersError",
    "ByteStream",
    "Credentials",
    "Field",
    "Fields",
    "HTTPRequest",
    "Payload",
    "Seekable",
    "SigV4Signer",
    "SigningError",
    "SigningScope",
    "format_timestamp",
    "is_replayable",
)
