#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import AsyncIterable, Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteStream(Protocol):
    """A file-like object with a read method that returns bytes."""

    def read(self, size: int = -1, /) -> bytes: ...


@runtime_checkable
class Seekable(Protocol):
    """A file-like object with seek and tell implemented."""

    def seek(self, offset: int, whence: int = 0, /) -> int: ...

    def tell(self) -> int: ...


type Payload = bytes | bytearray | ByteStream | Iterable[bytes] | AsyncIterable[bytes]
"""Request payloads.

Byte strings and seekable streams can be replayed. Anything else is read once.
"""


def is_replayable(payload: Payload | None) -> bool:
    """Whether the payload can be sent again from its initial position."""
    if payload is None or isinstance(payload, bytes | bytearray):
        return True
    return isinstance(payload, Seekable) and isinstance(payload, ByteStream)
