"""CSV output that, when closed, writes a copy sorted by the second column."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from itertools import islice
from typing import Iterable, Sequence

from .csv_output import CsvOutput
from .fieldset import FieldSet

_log = logging.getLogger(__name__)

_ULONG_MAX = (1 << 64) - 1
_STRTOUL = re.compile(r"\s*([+-]?)(\d*)")


@dataclass(frozen=True)
class CsvRecord:
    """A CSV line split into address, numeric source address and the rest."""

    saddr: str
    ip_src_num: int
    rest: str | None = None


def _strtoul(text: str) -> int:
    match = _STRTOUL.match(text)
    digits = match.group(2)
    value = min(int(digits), _ULONG_MAX) if digits else 0
    if match.group(1) == "-":
        value = (-value) & _ULONG_MAX
    return value


def _skip(text: str, pos: int, chars: str) -> int:
    while pos < len(text) and text[pos] in chars:
        pos += 1
    return pos


def parse_record(line: str) -> CsvRecord:
    """Split a line into its first column, its numeric second column and the rest."""
    pos = _skip(line, 0, ",")
    if pos >= len(line):
        raise ValueError("record has no source address")
    end = line.find(",", pos)
    if end == -1:
        raise ValueError("record has no numeric source address")
    saddr = line[pos:end]
    pos = _skip(line, end + 1, ",")
    if pos >= len(line):
        raise ValueError("record has no numeric source address")
    end = line.find(",", pos)
    if end == -1:
        token, rest_start = line[pos:], len(line)
    else:
        token, rest_start = line[pos:end], end + 1
    rest_start = _skip(line, rest_start, "\n")
    rest = None
    if rest_start < len(line):
        rest = line[rest_start:].split("\n", 1)[0]
    return CsvRecord(saddr, _strtoul(token), rest)


def sort_csv_records(lines: Iterable[str]) -> list[CsvRecord]:
    """Parse record lines and order them by their numeric source address."""
    return sorted((parse_record(line) for line in lines), key=lambda r: r.ip_src_num)


def _format_record(record: CsvRecord) -> str:
    line = f"{record.saddr},{record.ip_src_num}"
    if record.rest:
        line += f",{record.rest}"
    return line + "\n"


class SortedCsvOutput(CsvOutput):
    """CSV writer that also leaves a copy sorted by source address on close."""

    def __init__(
        self,
        path: str | None = None,
        fields: Sequence[str] = (),
        header: bool = True,
        processed_path: str = "output_processed.csv",
    ):
        super().__init__(path, fields, header)
        self.path = path
        self.fields = list(fields)
        self.processed_path = processed_path
        self.records_written = 0
        self._closed = False

    def write(self, fs: FieldSet) -> None:
        if self._file is None:
            return
        self.records_written += 1
        super().write(fs)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        super().close()
        self._post_process()

    def _post_process(self) -> None:
        if self.path is not None:
            _log.debug("Results written to %s; post processing", self.path)
        if self.path is None or self.path == "-":
            raise ValueError("could not open CSV output file for post processing")
        try:
            source = open(self.path, encoding="utf-8", newline="")
        except OSError as exc:
            raise ValueError(
                "could not open CSV output file for post processing"
            ) from exc
        with source:
            first = source.readline()
            if not first:
                raise ValueError("could not read first line of CSV output file")
            records = sort_csv_records(islice(source, self.records_written))
        with open(self.processed_path, "w", encoding="utf-8", newline="") as out:
            out.write(first)
            out.writelines(_format_record(record) for record in records)