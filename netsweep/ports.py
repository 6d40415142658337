"""Target port lists and their textual specification."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

MAX_PORT = 0xFFFF

_ATOI = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


@dataclass
class PortConf:
    """An ordered list of target ports with fast membership tests."""

    ports: list[int] = field(default_factory=list)
    _members: set[int] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        for port in self.ports:
            self._check(port)
        self._members = set(self.ports)

    @staticmethod
    def _check(port: int) -> None:
        if port < 0 or port > MAX_PORT:
            raise ValueError(f"invalid target port specified: {port}")

    def add(self, port: int) -> None:
        self._check(port)
        self.ports.append(port)
        self._members.add(port)

    def __contains__(self, port: object) -> bool:
        return port in self._members

    def __len__(self) -> int:
        return len(self.ports)

    def __iter__(self) -> Iterator[int]:
        return iter(self.ports)


def parse_ports(portdef: str, ports: PortConf | None = None) -> PortConf:
    """Parse "*", or comma separated ports and ranges like "80,8000-8010"."""
    if ports is None:
        ports = PortConf()
    if portdef == "*":
        for port in range(MAX_PORT + 1):
            ports.add(port)
        return ports
    for token in filter(None, portdef.split(",")):
        if "-" in token:
            first_text, _, last_text = token.partition("-")
            first, last = _atoi(first_text), _atoi(last_text)
            if last > MAX_PORT:
                raise ValueError(f"invalid target port specified: {last}")
            for port in range(first, last + 1):
                ports.add(port)
        else:
            ports.add(_atoi(token))
    return ports