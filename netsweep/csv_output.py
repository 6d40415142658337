"""Comma-separated output of field sets."""

from __future__ import annotations

import sys
from typing import Sequence, TextIO

from .fieldset import FieldSet, FieldsetError, FieldType


def hex_encode(data: bytes) -> str:
    """Lower-case hexadecimal encoding of binary data."""
    return bytes(data).hex()


def format_header(fields: Sequence[str]) -> str:
    return ",".join(fields)


def _format_field(field) -> str:
    if field.type == FieldType.STRING:
        return f'"{field.value}"' if "," in field.value else field.value
    if field.type == FieldType.UINT64:
        return str(field.value)
    if field.type == FieldType.BOOL:
        return str(int(field.value))
    if field.type == FieldType.BINARY:
        return hex_encode(field.value)
    if field.type == FieldType.NULL:
        return ""
    raise FieldsetError("received unknown output type")


def format_csv_row(fs: FieldSet) -> str:
    """Render one record as a CSV line, without the trailing newline."""
    return ",".join(_format_field(field) for field in fs)


class CsvOutput:
    """Writes records as CSV lines to a file or to standard output."""

    def __init__(
        self,
        path: str | None = None,
        fields: Sequence[str] = (),
        header: bool = True,
    ):
        self._owned = path is not None and path != "-"
        self._file: TextIO | None
        if self._owned:
            self._file = open(path, "w", encoding="utf-8", newline="")
        else:
            self._file = sys.stdout
        if header:
            self._file.write(format_header(fields) + "\n")
            self._file.flush()

    def write(self, fs: FieldSet) -> None:
        if self._file is None:
            return
        self._file.write(format_csv_row(fs) + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is None:
            return
        self._file.flush()
        if self._owned:
            self._file.close()
        self._file = None

    def __enter__(self) -> "CsvOutput":
        return self

    def __exit__(self, *args) -> None:
        self.close()