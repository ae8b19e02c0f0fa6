#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Builders for the canonical form of a request.

The canonical request is the byte-exact input to signing. It is laid out as::

    <HTTPMethod>\\n
    <CanonicalURI>\\n
    <CanonicalQueryString>\\n
    <CanonicalHeaders>\\n
    <SignedHeaders>\\n
    <HashedPayload>

where ``<CanonicalHeaders>`` is itself newline terminated, so a blank line
separates it from the signed header names.
"""

from collections.abc import Iterable
from urllib.parse import parse_qsl, quote

from ._http import URI, Fields
from .exceptions import SigningError

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "accept",
    "accept-encoding",
    "authorization",
    "connection",
    "expect",
    "user-agent",
    "x-amzn-trace-id",
)

UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def encode_component(value: str) -> str:
    """Percent-encode everything except unreserved characters.

    Spaces become ``%20``.
    """
    try:
        return quote(value, safe="")
    except UnicodeEncodeError as e:
        raise SigningError(f"Cannot encode {value!r}: {e}") from e


def encode_query(params: Iterable[tuple[str, str]]) -> str:
    """Encode query parameters for the wire, keeping their order.

    A parameter with an empty value is written as a bare key, as for the ``?acl``
    style of sub-resource.
    """
    parts: list[str] = []
    for key, value in params:
        if value:
            parts.append(f"{encode_component(key)}={encode_component(value)}")
        else:
            parts.append(encode_component(key))
    return "&".join(parts)


def parse_query(query: str | None) -> list[tuple[str, str]]:
    """Decode a wire query string into ordered ``(key, value)`` pairs."""
    if not query:
        return []
    return parse_qsl(query, keep_blank_values=True)


def format_canonical_path(
    path: str | None, *, double_encode: bool = True, normalize: bool = True
) -> str:
    """Encode a path for signing.

    :param path: The unencoded path. An absent or empty path is ``/``.
    :param double_encode: Encode the wire form of the path a second time.
    :param normalize: Remove dot segments and consecutive slashes first.
    """
    path = path or "/"
    if normalize:
        path = remove_dot_segments(path)
    try:
        encoded = quote(path, safe="/")
        if double_encode:
            encoded = quote(encoded, safe="/")
    except UnicodeEncodeError as e:
        raise SigningError(f"Cannot encode request path {path!r}: {e}") from e
    return encoded


def format_canonical_query(params: Iterable[tuple[str, str]]) -> str:
    """Sort and encode query parameters.

    Parameters are sorted by encoded key only. The sort is stable, so repeated
    keys keep their original relative order.
    """
    encoded = [(encode_component(k), encode_component(v)) for k, v in params]
    encoded.sort(key=lambda kv: kv[0])
    return "&".join(f"{key}={value}" for key, value in encoded)


def normalize_signing_fields(*, fields: Fields, destination: URI) -> dict[str, str]:
    """Select, normalize and sort the headers that will be signed.

    Names are lower-cased. Each value is trimmed with inner whitespace runs
    collapsed, and values of the same header are joined by commas in the order
    they were added. ``host`` is always present.
    """
    normalized: dict[str, str] = {}
    for fld in fields:
        name = fld.name.lower()
        if name in HEADERS_EXCLUDED_FROM_SIGNING:
            continue
        values: list[str] = []
        for value in fld.values:
            if "\n" in value or "\r" in value:
                raise SigningError(f"Header {fld.name!r} contains a line break.")
            values.append(" ".join(value.split()))
        if name in normalized:
            values.insert(0, normalized[name])
        normalized[name] = ",".join(values)
    if "host" not in normalized:
        normalized["host"] = destination.host_header
    return dict(sorted(normalized.items()))


def format_canonical_fields(fields: dict[str, str]) -> str:
    return "".join(f"{key}:{value}\n" for key, value in fields.items())


def canonical_request(
    *,
    method: str,
    path: str,
    query: str,
    signing_fields: dict[str, str],
    payload_hash: str,
) -> str:
    """Join already canonicalized components into the canonical request.

    :param method: The HTTP method, upper-cased on output.
    :param path: Output of :py:func:`format_canonical_path`.
    :param query: Output of :py:func:`format_canonical_query`.
    :param signing_fields: Output of :py:func:`normalize_signing_fields`.
    :param payload_hash: Hex SHA-256 of the payload or ``UNSIGNED-PAYLOAD``.
    """
    return (
        f"{method.upper()}\n"
        f"{path}\n"
        f"{query}\n"
        f"{format_canonical_fields(signing_fields)}\n"
        f"{';'.join(signing_fields)}\n"
        f"{payload_hash}"
    )


def remove_dot_segments(path: str) -> str:
    """Removes dot segments and consecutive slashes from a path.

    Dot segments are handled per :rfc:`3986#section-5.2.4`.
    """
    output: list[str] = []
    for segment in path.split("/"):
        if segment == ".":
            continue
        elif segment != "..":
            output.append(segment)
        elif output:
            output.pop()
    if path.startswith("/") and (not output or output[0]):
        output.insert(0, "")
    if output and path.endswith(("/.", "/..")):
        output.append("")
    result = "/".join(output)
    while "//" in result:
        result = result.replace("//", "/")
    return result or "/"
