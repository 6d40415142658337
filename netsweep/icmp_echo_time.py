"""ICMP echo probe carrying its send time, for round-trip measurement."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass

from .fieldset import FieldDef, FieldDefSet, FieldSet
from .icmp_echo import ICMP_ECHO, ICMP_MINLEN, classify, internet_checksum

_UINT32_MASK = 0xFFFFFFFF
_UINT64_MASK = (1 << 64) - 1

MAX_PACKET_LENGTH = 62
PCAP_FILTER = "icmp and icmp[0]!=8"
PCAP_SNAPLEN = 96

FIELDS = FieldDefSet(
    [
        FieldDef("type", "int", "icmp message type"),
        FieldDef("code", "int", "icmp message sub type code"),
        FieldDef("icmp_id", "int", "icmp id number"),
        FieldDef("seq", "int", "icmp sequence number"),
        FieldDef("sent_timestamp_ts", "int", "timestamp of sent probe in seconds since Epoch"),
        FieldDef("sent_timestamp_us", "int", "microsecond part of sent timestamp"),
        FieldDef("recv_timestamp_ts", "int", "timestamp of receive probe in seconds since Epoch"),
        FieldDef("recv_timestamp_us", "int", "microsecond part of receive timestamp"),
        FieldDef("rtt_us", "int", "round-trip time in microseconds"),
        FieldDef("dst_raw", "int", "raw destination IP address of sent probe"),
        FieldDef("classification", "string", "probe module classification"),
        FieldDef("success", "int", "did probe module classify response as success"),
    ]
)

_HEADER = struct.Struct("!BBHHH")


@dataclass(frozen=True)
class RttPayload:
    """The send time and destination stored in the echo payload."""

    sent_tv_sec: int
    sent_tv_usec: int
    dst: int

    _STRUCT = struct.Struct("!III")

    def pack(self) -> bytes:
        return self._STRUCT.pack(
            self.sent_tv_sec & _UINT32_MASK,
            self.sent_tv_usec & _UINT32_MASK,
            self.dst & _UINT32_MASK,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "RttPayload":
        if len(data) < cls._STRUCT.size:
            raise ValueError("RTT payload too short")
        return cls(*cls._STRUCT.unpack_from(data))


RTT_PAYLOAD_LEN = RttPayload._STRUCT.size


def build_timed_echo(ident: int, seq: int, dst: int, sent_time: float) -> bytes:
    """An echo request whose payload records sent_time (seconds) and dst."""
    seconds = math.floor(sent_time)
    micros = int((sent_time - seconds) * 1_000_000)
    payload = RttPayload(int(seconds), micros, dst).pack()
    body = _HEADER.pack(ICMP_ECHO, 0, 0, ident & 0xFFFF, seq & 0xFFFF) + payload
    checksum = internet_checksum(body)
    return body[:2] + struct.pack("!H", checksum) + body[4:]


def compute_rtt_us(sent_sec: int, sent_usec: int, recv_sec: int, recv_nsec: int) -> int:
    """Round-trip time in microseconds, wrapping like an unsigned 64-bit value."""
    received = recv_sec * 1_000_000 + recv_nsec // 1000
    sent = sent_sec * 1_000_000 + sent_usec
    return (received - sent) & _UINT64_MASK


def rtt_fields(icmp_bytes: bytes, recv_sec: int, recv_nsec: int) -> FieldSet:
    """The record for a reply to a timed echo, received at the given time."""
    if len(icmp_bytes) < ICMP_MINLEN + RTT_PAYLOAD_LEN:
        raise ValueError("ICMP message too short to hold a timed payload")
    icmp_type, code, _, ident, seq = _HEADER.unpack_from(icmp_bytes)
    payload = RttPayload.unpack(icmp_bytes[ICMP_MINLEN:])
    recv_us = recv_nsec // 1000
    fs = FieldSet(FIELDS)
    fs.add_uint64("type", icmp_type)
    fs.add_uint64("code", code)
    fs.add_uint64("icmp_id", ident)
    fs.add_uint64("seq", seq)
    fs.add_uint64("sent_timestamp_ts", payload.sent_tv_sec)
    fs.add_uint64("sent_timestamp_us", payload.sent_tv_usec)
    fs.add_uint64("recv_timestamp_ts", recv_sec)
    fs.add_uint64("recv_timestamp_us", recv_us)
    fs.add_uint64(
        "rtt_us",
        compute_rtt_us(payload.sent_tv_sec, payload.sent_tv_usec, recv_sec, recv_nsec),
    )
    fs.add_uint64("dst_raw", payload.dst)
    classification, success = classify(icmp_type)
    fs.add_string("classification", classification)
    fs.add_uint64("success", 1 if success else 0)
    return fs