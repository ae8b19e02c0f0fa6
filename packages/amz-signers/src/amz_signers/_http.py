#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from functools import cached_property
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from ._io import Payload


class Field:
    """A header name with one or more values.

    Names are case insensitive. The name is preserved as given for transmission.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def set(self, values: list[str]) -> None:
        """Overwrite existing field values."""
        self.values = values

    def as_string(self, delimiter: str = ",") -> str:
        """Get all values joined by ``delimiter``.

        Values are joined as they are, without quoting. A field with no values
        produces the empty string.
        """
        return delimiter.join(self.values)

    def as_tuples(self) -> list[tuple[str, str]]:
        """Get list of ``name``, ``value`` tuples, one per value."""
        return [(self.name, val) for val in self.values]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, values={self.values!r})"


class Fields:
    def __init__(self, initial: Iterable[Field] | None = None):
        """Collection of header entries keyed by lower-cased name.

        Entries with the same name in ``initial`` are merged, keeping the order in
        which their values appear.

        :param initial: Initial list of ``Field`` objects.
        """
        self.entries: OrderedDict[str, Field] = OrderedDict()
        for fld in initial or ():
            self.add_field(fld)

    @classmethod
    def from_mapping(cls, headers: dict[str, str | list[str]]) -> Fields:
        """Build a collection from a ``name -> value(s)`` mapping."""
        fields = cls()
        for name, value in headers.items():
            values = [value] if isinstance(value, str) else value
            fields.add_field(Field(name=name, values=values))
        return fields

    def set_field(self, field: Field) -> None:
        """Set or override the entry for ``field.name``."""
        self.entries[field.name.lower()] = field

    def add_field(self, field: Field) -> None:
        """Append the values of ``field`` to any existing entry of the same name."""
        existing = self.entries.get(field.name.lower())
        if existing is None:
            self.entries[field.name.lower()] = Field(
                name=field.name, values=field.values
            )
        else:
            existing.values.extend(field.values)

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self.entries.get(key.lower(), default)

    def get_value(self, key: str, default: str | None = None) -> str | None:
        """Get the comma-joined values of a field, or ``default`` if it is absent."""
        fld = self.get(key)
        return default if fld is None else fld.as_string()

    def copy(self) -> Fields:
        """Copy the collection and its fields."""
        return Fields(Field(name=f.name, values=f.values) for f in self)

    def __getitem__(self, name: str) -> Field:
        return self.entries[name.lower()]

    def __delitem__(self, name: str) -> None:
        del self.entries[name.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"Fields({list(self.entries.values())})"


DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}


@dataclass(kw_only=True, frozen=True)
class URI:
    """Target location of an :py:class:`HTTPRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``s3.amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI, not percent-encoded."""

    query: str | None = None
    """Query component of the URI, already percent-encoded for the wire."""

    @classmethod
    def parse(cls, url: str) -> URI:
        """Split an absolute URL into its components."""
        parts = urlsplit(url)
        if not parts.hostname:
            raise ValueError(f"URL has no host: {url!r}")
        return cls(
            scheme=parts.scheme or "https",
            host=parts.hostname,
            port=parts.port,
            path=unquote(parts.path) or None,
            query=parts.query or None,
        )

    @property
    def encoded_path(self) -> str:
        """The path as sent on the wire. An absent path is ``/``."""
        return quote(self.path or "/", safe="/")

    @property
    def netloc(self) -> str:
        """``host`` or ``host:port`` when an explicit port is set."""
        return self._netloc

    # cached_property allows assignment, so it is kept behind a property.
    @cached_property
    def _netloc(self) -> str:
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return self.host

    @property
    def host_header(self) -> str:
        """The value of the host header, omitting the scheme's default port."""
        if self.port is not None and DEFAULT_PORTS.get(self.scheme) == self.port:
            return self.host
        return self.netloc

    def build(self) -> str:
        """Construct the URL string ``{scheme}://{host}:{port}{path}?{query}``."""
        return urlunsplit(
            (self.scheme, self.netloc, self.encoded_path, self.query or "", "")
        )

    def with_query(self, query: str | None) -> URI:
        return replace(self, query=query or None)


class HTTPRequest:
    def __init__(
        self,
        *,
        destination: URI,
        method: str,
        body: Payload | None = None,
        fields: Fields | None = None,
    ):
        self.destination = destination
        self.method = method
        self.body = body
        self.fields = fields if fields is not None else Fields()

    def copy(self) -> HTTPRequest:
        """Copy the request with an independent set of fields.

        The destination is immutable and the body is shared.
        """
        return HTTPRequest(
            destination=self.destination,
            method=self.method,
            body=self.body,
            fields=self.fields.copy(),
        )

    def __repr__(self) -> str:
        return (
            f"HTTPRequest(method={self.method!r}, "
            f"destination={self.destination.build()!r}, fields={self.fields!r})"
        )
