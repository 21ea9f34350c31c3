# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections import Counter, OrderedDict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from urllib.parse import quote, urlunsplit


class Field:
    """A header name with one or more values.

    Field names are case insensitive. The name is preserved as supplied so it can be
    sent on the wire unchanged.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def as_string(self, delimiter: str = ",") -> str:
        """Get the delimited string of all values.

        A field with exactly one value returns it unmodified.
        """
        return delimiter.join(self.values)

    def as_tuples(self) -> list[tuple[str, str]]:
        return [(self.name, val) for val in self.values]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, values={self.values!r})"


class Fields:
    def __init__(self, initial: Iterable[Field] | None = None):
        """Collection of header entries mapped by lowercase name.

        :param initial: Initial list of ``Field`` objects. Names must be unique after
            normalization.
        """
        init_fields = list(initial) if initial is not None else []
        init_field_names = [self._normalize_field_name(fld.name) for fld in init_fields]
        fname_counter = Counter(init_field_names)
        non_unique_names = [name for name, num in fname_counter.items() if num > 1]
        if non_unique_names:
            raise ValueError(
                "Field names of the initial list of fields must be unique. The "
                "following normalized field names appear more than once: "
                f"{', '.join(non_unique_names)}."
            )
        self.entries: OrderedDict[str, Field] = OrderedDict(
            zip(init_field_names, init_fields)
        )

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | None) -> Fields:
        if headers is None:
            return cls()
        return cls(Field(name=name, values=[value]) for name, value in headers.items())

    def set_field(self, field: Field) -> None:
        """Set or override the entry for ``field.name``."""
        self.entries[self._normalize_field_name(field.name)] = field

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self[key] if key in self else default

    def __getitem__(self, name: str) -> Field:
        return self.entries[self._normalize_field_name(name)]

    def __delitem__(self, name: str) -> None:
        del self.entries[self._normalize_field_name(name)]

    def _normalize_field_name(self, name: str) -> str:
        return name.lower()

    def as_dict(self) -> dict[str, str]:
        """Flatten to a ``name -> value`` mapping using the preserved names."""
        return {fld.name: fld.as_string() for fld in self}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Fields({self.entries})"

    def __contains__(self, key: str) -> bool:
        return self._normalize_field_name(key) in self.entries


@dataclass(kw_only=True, frozen=True)
class URI:
    """Target location for an :py:class:`HTTPRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The host, optionally followed by ``:port``."""

    path: str | None = None
    """The unencoded object path."""

    query: str | None = None
    """Query component of the URI as string."""

    def build(self) -> str:
        """Construct the URI string with the path percent-encoded the same way it is
        canonicalized for signing."""
        return urlunsplit(
            (
                self.scheme,
                self.host,
                uri_encode_path(self.path),
                self.query or "",
                "",
            )
        )


def uri_encode_path(path: str | None) -> str:
    """Percent-encode every character of ``path`` except unreserved ones and ``/``."""
    if not path:
        return "/"
    return quote(string=path, safe="/")
