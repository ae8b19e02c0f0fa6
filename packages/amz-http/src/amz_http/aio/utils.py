#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from asyncio import sleep
from collections.abc import AsyncIterable, AsyncIterator, Iterable

from amz_signers import ByteStream, Payload

CHUNK_SIZE = 64 * 1024


async def async_list[E](lst: Iterable[E]) -> AsyncIterable[E]:
    """Turn an Iterable into an AsyncIterable."""
    for x in lst:
        await sleep(0)
        yield x


async def iter_payload(
    payload: Payload, chunk_size: int = CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Yield a payload in chunks, whatever its type.

    Streams are read from their current position.
    """
    match payload:
        case bytes() | bytearray():
            for start in range(0, len(payload), chunk_size):
                yield bytes(payload[start : start + chunk_size])
        case AsyncIterable():
            async for chunk in payload:
                yield chunk
        case ByteStream():
            while chunk := payload.read(chunk_size):
                yield chunk
        case _:
            for chunk in payload:
                yield chunk


async def read_payload(payload: Payload | None) -> bytes:
    """Read a whole payload into memory."""
    if payload is None:
        return b""
    return b"".join([chunk async for chunk in iter_payload(payload)])
