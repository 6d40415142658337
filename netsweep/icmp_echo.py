"""ICMP echo request probe: payload options, packet building and replies."""

from __future__ import annotations

import re
import struct
from typing import Sequence

from .fieldset import FieldDef, FieldDefSet, FieldSet

ICMP_MINLEN = 8
ICMP_MAX_PAYLOAD_LEN = 1458
DEFAULT_PAYLOAD_LEN = 20
_ETHER_HEADER_LEN = 14
_IP_HEADER_LEN = 20
_MAX_FRAME = 1500

ICMP_ECHOREPLY = 0
ICMP_UNREACH = 3
ICMP_SOURCEQUENCH = 4
ICMP_REDIRECT = 5
ICMP_ECHO = 8
ICMP_TIMXCEED = 11

PCAP_FILTER = "icmp and icmp[0]!=8"
PCAP_SNAPLEN = 96

USAGE_ERROR = (
    "unknown ICMP probe specification "
    "(expected file:/path or text:STRING or hex:01020304)"
)

HELPTEXT = (
    "Probe module that sends ICMP echo requests to hosts.\n"
    "Payload of ICMP packets will consist of zeroes unless you customize it with\n"
    " --probe-args=file:/path_to_payload_file\n"
    " --probe-args=text:SomeText\n"
    " --probe-args=hex:5061796c6f6164"
)

FIELDS = FieldDefSet(
    [
        FieldDef("type", "int", "icmp message type"),
        FieldDef("code", "int", "icmp message sub type code"),
        FieldDef("icmp_id", "int", "icmp id number"),
        FieldDef("seq", "int", "icmp sequence number"),
        FieldDef("classification", "string", "probe module classification"),
        FieldDef("success", "bool", "did probe module classify response as success"),
        FieldDef("data", "binary", "ICMP payload"),
    ]
)

_HEADER = struct.Struct("!BBHHH")
_HEX_PAIR = re.compile(r"[0-9a-fA-F]{1,2}")

_CLASSIFICATIONS = {
    ICMP_ECHOREPLY: "echoreply",
    ICMP_UNREACH: "unreach",
    ICMP_SOURCEQUENCH: "sourcequench",
    ICMP_REDIRECT: "redirect",
    ICMP_TIMXCEED: "timxceed",
}


class IcmpArgsError(ValueError):
    """Raised when the probe arguments cannot be turned into a payload."""


def _read_payload_file(path: str) -> bytes:
    try:
        with open(path, "rb") as inp:
            inp.seek(0, 2)
            size = inp.tell()
            if size > ICMP_MAX_PAYLOAD_LEN:
                raise IcmpArgsError(
                    f"input file larger than {ICMP_MAX_PAYLOAD_LEN} bytes and will "
                    f"not fit on the wire ({size} bytes provided)"
                )
            inp.seek(0)
            return inp.read(ICMP_MAX_PAYLOAD_LEN)
    except OSError as exc:
        raise IcmpArgsError(f"could not open ICMP data file '{path}'") from exc


def _parse_hex(text: str) -> bytes:
    if len(text) % 2:
        raise IcmpArgsError("invalid hex input (length must be a multiple of 2)")
    out = bytearray()
    for start in range(0, len(text), 2):
        match = _HEX_PAIR.match(text, start, start + 2)
        if match is None:
            raise IcmpArgsError(f"non-hex character: '{text[start]}'")
        out.append(int(match.group(0), 16) & 0xFF)
    return bytes(out)


def parse_probe_args(args: str | None) -> bytes:
    """Turn "text:...", "file:..." or "hex:..." into an echo payload."""
    if not args:
        return bytes(DEFAULT_PAYLOAD_LEN)
    kind, colon, value = args.partition(":")
    if not colon:
        raise IcmpArgsError(USAGE_ERROR)
    if args.startswith("text"):
        payload = value.encode("utf-8")
    elif args.startswith("file"):
        payload = _read_payload_file(value)
    elif args.startswith("hex"):
        payload = _parse_hex(value)
    else:
        raise IcmpArgsError(USAGE_ERROR)
    if len(payload) > ICMP_MAX_PAYLOAD_LEN:
        raise IcmpArgsError(
            f"ICMP payload must be at most {ICMP_MAX_PAYLOAD_LEN} bytes to fit "
            f"on the wire ({len(payload)} were provided)"
        )
    return payload


def max_packet_length(payload_len: int) -> int:
    """Length of the whole Ethernet frame carrying an echo with this payload."""
    length = _ETHER_HEADER_LEN + _IP_HEADER_LEN + ICMP_MINLEN + payload_len
    if length > _MAX_FRAME:
        raise IcmpArgsError(f"packet of {length} bytes does not fit on the wire")
    return length


def internet_checksum(data: bytes) -> int:
    """The 16-bit one's complement checksum used by IP and ICMP."""
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    total = sum(word for (word,) in struct.iter_unpack("!H", data))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def ids_from_validation(validation: Sequence[int]) -> tuple[int, int]:
    """The ICMP identifier and sequence number taken from validation words."""
    return validation[1] & 0xFFFF, validation[2] & 0xFFFF


def build_echo(ident: int, seq: int, payload: bytes = b"") -> bytes:
    """An ICMP echo request message with a valid checksum."""
    body = _HEADER.pack(ICMP_ECHO, 0, 0, ident & 0xFFFF, seq & 0xFFFF) + bytes(payload)
    checksum = internet_checksum(body)
    return body[:2] + struct.pack("!H", checksum) + body[4:]


def classify(icmp_type: int) -> tuple[str, bool]:
    """The classification of a reply type and whether it counts as success."""
    name = _CLASSIFICATIONS.get(icmp_type, "other")
    return name, icmp_type == ICMP_ECHOREPLY


def echo_fields(icmp_bytes: bytes) -> FieldSet:
    """The record for a received ICMP message, starting at its ICMP header."""
    if len(icmp_bytes) < ICMP_MINLEN:
        raise ValueError("ICMP message shorter than its header")
    icmp_type, code, _, ident, seq = _HEADER.unpack_from(icmp_bytes)
    fs = FieldSet(FIELDS)
    fs.add_uint64("type", icmp_type)
    fs.add_uint64("code", code)
    fs.add_uint64("icmp_id", ident)
    fs.add_uint64("seq", seq)
    classification, success = classify(icmp_type)
    fs.add_string("classification", classification)
    if success:
        fs.add_uint64("success", 1)
    else:
        fs.add_bool("success", False)
    data = bytes(icmp_bytes[4:])
    if data:
        fs.add_binary("data", data)
    else:
        fs.add_null("data")
    return fs