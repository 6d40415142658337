"""Typed, ordered field records produced by probes and consumed by outputs."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

MAX_FIELDS = 128
MAX_LIST_LENGTH = 255

_UINT64_MASK = (1 << 64) - 1
_REPLACEMENT = "\ufffd"


class FieldsetError(Exception):
    """Raised when a field set is used inconsistently."""


class FieldType(enum.IntEnum):
    RESERVED = 0
    STRING = 1
    UINT64 = 2
    BINARY = 3
    NULL = 4
    FIELDSET = 5
    REPEATED = 6
    BOOL = 7


@dataclass(frozen=True)
class FieldDef:
    """Description of a field a probe module can produce."""

    name: str
    type: str
    desc: str = ""


class FieldDefSet:
    """An ordered collection of field definitions."""

    def __init__(self, defs: Iterable[FieldDef] = ()):
        self._defs: list[FieldDef] = []
        self.extend(defs)

    def extend(self, defs: Iterable[FieldDef]) -> None:
        new = list(defs)
        if len(self._defs) + len(new) > MAX_FIELDS:
            raise FieldsetError("out of room in field def set")
        self._defs.extend(new)

    def index_of(self, name: str) -> int:
        """Return the position of the named definition; KeyError if absent."""
        for index, fielddef in enumerate(self._defs):
            if fielddef.name == name:
                return index
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self._defs)

    def __iter__(self) -> Iterator[FieldDef]:
        return iter(self._defs)

    def __getitem__(self, index: int) -> FieldDef:
        return self._defs[index]


@dataclass(frozen=True)
class Field:
    name: str | None
    type: FieldType
    value: object


def sanitize_utf8(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing each invalid byte with U+FFFD."""
    parts: list[str] = []
    pos = 0
    while pos < len(data):
        try:
            parts.append(data[pos:].decode("utf-8"))
            break
        except UnicodeDecodeError as exc:
            bad = pos + exc.start
            parts.append(data[pos:bad].decode("utf-8"))
            parts.append(_REPLACEMENT)
            pos = bad + 1
    return "".join(parts)


class FieldSet:
    """An ordered list of named, typed values, or a repeated list of one type."""

    def __init__(
        self,
        defs: FieldDefSet | None = None,
        repeated_type: FieldType | None = None,
    ):
        self.defs = defs
        self.inner_type = repeated_type
        self.kind = FieldType.FIELDSET if repeated_type is None else FieldType.REPEATED
        self._fields: list[Field] = []

    @classmethod
    def repeated(cls, inner_type: FieldType) -> "FieldSet":
        return cls(None, FieldType(inner_type))

    def _add(self, name: str | None, ftype: FieldType, value: object) -> None:
        if len(self._fields) + 1 >= MAX_FIELDS:
            raise FieldsetError("out of room in fieldset")
        if self.inner_type is not None and self.inner_type != ftype:
            raise FieldsetError(
                "object added to repeated field does not match type of repeated field."
            )
        if self.defs is not None:
            position = len(self._fields)
            expected = self.defs[position].name if position < len(self.defs) else None
            if expected != name:
                raise FieldsetError(
                    f"added field ({name}) is not next expected field ({expected})."
                )
        self._fields.append(Field(name, ftype, value))

    def _modify(self, name: str, ftype: FieldType, value: object) -> None:
        for index, field in enumerate(self._fields):
            if field.name == name:
                self._fields[index] = Field(name, ftype, value)
                return
        raise FieldsetError("attempting to modify non-existent field")

    def add_null(self, name: str | None) -> None:
        self._add(name, FieldType.NULL, None)

    def add_string(self, name: str | None, value: str) -> None:
        self._add(name, FieldType.STRING, value)

    def add_unsafe_string(self, name: str | None, value: bytes | str) -> None:
        if isinstance(value, (bytes, bytearray)):
            value = sanitize_utf8(bytes(value))
        self._add(name, FieldType.STRING, value)

    def chkadd_string(self, name: str | None, value: str | None) -> None:
        if value is None:
            self.add_null(name)
        else:
            self.add_string(name, value)

    def chkadd_unsafe_string(self, name: str | None, value: bytes | str | None) -> None:
        if value is None:
            self.add_null(name)
        else:
            self.add_unsafe_string(name, value)

    def add_uint64(self, name: str | None, value: int) -> None:
        self._add(name, FieldType.UINT64, int(value) & _UINT64_MASK)

    def add_bool(self, name: str | None, value: object) -> None:
        self._add(name, FieldType.BOOL, bool(value))

    def add_binary(self, name: str | None, value: bytes) -> None:
        self._add(name, FieldType.BINARY, bytes(value))

    def add_fieldset(self, name: str | None, child: "FieldSet") -> None:
        self._add(name, FieldType.FIELDSET, child)

    def add_repeated(self, name: str | None, child: "FieldSet") -> None:
        self._add(name, FieldType.REPEATED, child)

    def modify_null(self, name: str) -> None:
        self._modify(name, FieldType.NULL, None)

    def modify_string(self, name: str, value: str) -> None:
        self._modify(name, FieldType.STRING, value)

    def modify_uint64(self, name: str, value: int) -> None:
        self._modify(name, FieldType.UINT64, int(value) & _UINT64_MASK)

    def modify_bool(self, name: str, value: object) -> None:
        self._modify(name, FieldType.BOOL, bool(value))

    def modify_binary(self, name: str, value: bytes) -> None:
        self._modify(name, FieldType.BINARY, bytes(value))

    def get_uint64(self, index: int) -> int:
        value = self._fields[index].value
        return 0 if value is None else int(value)

    def get_string(self, index: int) -> str:
        return self._fields[index].value

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __getitem__(self, index: int) -> Field:
        return self._fields[index]


def generate_translation(avail: FieldDefSet, requested: Sequence[str]) -> list[int]:
    """Map requested field names to their positions in the available set."""
    translation = []
    for name in requested:
        try:
            translation.append(avail.index_of(name))
        except KeyError:
            raise FieldsetError(
                f"specified field ({name}) not available in selected probe module."
            ) from None
    return translation


def full_translation(avail: FieldDefSet) -> list[int]:
    """A translation that keeps every available field in order."""
    return list(range(len(avail)))


def translate(fs: FieldSet, translation: Sequence[int]) -> FieldSet:
    """Build a new field set holding the fields of fs picked by translation."""
    result = FieldSet(None)
    result._fields = [fs[index] for index in translation]
    return result