"""Newline-delimited JSON output of field sets."""

from __future__ import annotations

import json
import sys
from typing import TextIO

from .csv_output import hex_encode
from .fieldset import Field, FieldSet, FieldsetError, FieldType

_INT64_LIMIT = 1 << 63


def field_to_json(field: Field) -> object:
    """Convert one field to a JSON-compatible value."""
    if field.type == FieldType.STRING:
        return field.value
    if field.type == FieldType.UINT64:
        value = int(field.value)
        return value - (1 << 64) if value >= _INT64_LIMIT else value
    if field.type == FieldType.BOOL:
        return bool(field.value)
    if field.type == FieldType.BINARY:
        return hex_encode(field.value)
    if field.type == FieldType.NULL:
        return None
    if field.type == FieldType.FIELDSET:
        return fieldset_to_json(field.value)
    if field.type == FieldType.REPEATED:
        return repeated_to_json(field.value)
    raise FieldsetError(f"received unknown output type: {int(field.type)}")


def repeated_to_json(fs: FieldSet) -> list:
    return [field_to_json(field) for field in fs]


def fieldset_to_json(fs: FieldSet) -> dict:
    """Convert a record to a dict, leaving out null fields."""
    return {
        field.name: field_to_json(field)
        for field in fs
        if field.type != FieldType.NULL
    }


def fieldset_to_json_line(fs: FieldSet) -> str:
    """Compact JSON text for a record, with forward slashes escaped."""
    text = json.dumps(fieldset_to_json(fs), separators=(",", ":"), ensure_ascii=False)
    return text.replace("/", "\\/")


class JsonOutput:
    """Writes one JSON object per line to a file or to standard output."""

    def __init__(self, path: str | None = None):
        self._owned = path is not None and path != "-"
        self._file: TextIO | None
        if self._owned:
            self._file = open(path, "w", encoding="utf-8")
        else:
            self._file = sys.stdout

    def write(self, fs: FieldSet) -> None:
        if self._file is None:
            return
        self._file.write(fieldset_to_json_line(fs) + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is None:
            return
        self._file.flush()
        if self._owned:
            self._file.close()
        self._file = None

    def __enter__(self) -> "JsonOutput":
        return self

    def __exit__(self, *args) -> None:
        self.close()