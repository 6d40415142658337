"""BACnet/IP ReadProperty probe: request payload and response handling."""

from __future__ import annotations

import struct
from typing import Sequence

from .fieldset import FieldDef, FieldDefSet, FieldSet

TYPE_IP = 0x81
FUNCTION_UNICAST_NPDU = 0x0A
NPDU_VERSION_ASHRAE_135_1995 = 0x01
SERVER_CHOICE_READ_PROPERTY = 0x0C

_BODY = bytes((0x0C, 0x02, 0x3F, 0xFF, 0xFF, 0x19, 0x4B))
_VLC = struct.Struct(">BBH")
_NPDU = struct.Struct(">BB")
_APDU = struct.Struct(">BBBB")

PAYLOAD_LEN = _VLC.size + _NPDU.size + _APDU.size + len(_BODY)
_ETHER_HEADER_LEN = 14
_IP_HEADER_LEN = 20
_UDP_HEADER_LEN = 8
MAX_PACKET_LENGTH = _ETHER_HEADER_LEN + _IP_HEADER_LEN + _UDP_HEADER_LEN + PAYLOAD_LEN

PCAP_FILTER = "udp || icmp"
PCAP_SNAPLEN = 1500

FIELDS = FieldDefSet(
    [
        FieldDef("sport", "int", "UDP source port"),
        FieldDef("dport", "int", "UDP destination port"),
        FieldDef("classification", "string", "probe module classification"),
        FieldDef("success", "bool", "did probe module classify response as success"),
        FieldDef("udp_payload", "binary", "UDP payload"),
    ]
)


def invoke_id_from_validation(validation: Sequence[int]) -> int:
    """The APDU invoke id carried in the top byte of the second validation word."""
    return (validation[1] >> 24) & 0xFF


def build_probe(invoke_id: int) -> bytes:
    """The UDP payload of a ReadProperty request with the given invoke id."""
    vlc = _VLC.pack(TYPE_IP, FUNCTION_UNICAST_NPDU, PAYLOAD_LEN)
    npdu = _NPDU.pack(NPDU_VERSION_ASHRAE_135_1995, 0x04)
    apdu = _APDU.pack(0x00, 0x05, invoke_id & 0xFF, SERVER_CHOICE_READ_PROPERTY)
    return vlc + npdu + apdu + _BODY


def is_bacnet_response(payload: bytes) -> bool:
    """Whether a UDP payload is long enough and carries the BACnet/IP type."""
    return len(payload) >= _VLC.size and payload[0] == TYPE_IP


def response_fields(sport: int, dport: int, payload: bytes) -> FieldSet:
    """The record for a UDP response to a BACnet probe."""
    fs = FieldSet(FIELDS)
    fs.add_uint64("sport", sport)
    fs.add_uint64("dport", dport)
    fs.add_string("classification", "bacnet")
    fs.add_bool("success", True)
    fs.add_binary("udp_payload", payload)
    return fs