# netsweep

Building blocks for single-packet network surveys. The package holds the
parts of a survey that do not touch a network interface: typed result
records, filter expressions over those records, the payloads of ICMP echo
and BACnet/IP probes together with the handling of their replies, and
writers that put results out as CSV or as JSON lines.

## Modules

| Module | Purpose |
| --- | --- |
| `netsweep.fieldset` | Ordered, typed result records (`FieldSet`), field definitions (`FieldDef`, `FieldDefSet`), `sanitize_utf8`, and translations that pick and reorder fields (`generate_translation`, `full_translation`, `translate`). |
| `netsweep.expression` | Filter expression trees (`Node`, `NodeType`, `Operation`, `make_op_node`, `make_field_node`, `make_string_node`, `make_int_node`), `validate_filter`, `evaluate` and the debug rendering `format_expression`. |
| `netsweep.ports` | Target port lists: `PortConf` and `parse_ports` for `"80"`, `"22,443"`, `"8000-8010"` or `"*"`. |
| `netsweep.csv_output` | `CsvOutput`, plus `format_header`, `format_csv_row` and `hex_encode`. |
| `netsweep.sorted_csv` | `SortedCsvOutput`: CSV output that, when closed, also writes a copy of its rows sorted by the numeric second column; `parse_record`, `sort_csv_records`, `CsvRecord`. |
| `netsweep.json_output` | `JsonOutput`, one compact JSON object per line, with nested and repeated fields; `field_to_json`, `fieldset_to_json`, `repeated_to_json`, `fieldset_to_json_line`. |
| `netsweep.bacnet` | BACnet/IP ReadProperty request payloads (`build_probe`), the invoke id taken from validation words, reply checks (`is_bacnet_response`) and reply records (`response_fields`). |
| `netsweep.icmp_echo` | ICMP echo requests with a payload from `text:`, `hex:` or `file:` probe arguments (`parse_probe_args`), `build_echo`, `internet_checksum`, `classify` and reply records (`echo_fields`). |
| `netsweep.icmp_echo_time` | ICMP echo requests that carry their send time and destination (`RttPayload`, `build_timed_echo`), `compute_rtt_us` and reply records with the round-trip time (`rtt_fields`). |

## Quick look

Parsing a port list:

```python
from netsweep.ports import PortConf, parse_ports

ports = PortConf()
parse_ports("22,80,8000-8002", ports)
assert 8001 in ports
assert len(ports) == 5
```

Building a record, filtering it and writing it out:

```python
from netsweep.fieldset import FieldDef, FieldDefSet, FieldSet
from netsweep.expression import (
    Operation, evaluate, make_field_node, make_int_node,
    make_op_node, make_string_node, validate_filter,
)
from netsweep.csv_output import format_csv_row
from netsweep.json_output import fieldset_to_json_line

defs = FieldDefSet([FieldDef("sport", "int"), FieldDef("classification", "string")])
record = FieldSet(defs)
record.add_uint64("sport", 80)
record.add_string("classification", "bacnet")

root = make_op_node(
    Operation.AND,
    make_op_node(Operation.GT, make_field_node("sport"), make_int_node(10)),
    make_op_node(Operation.EQ, make_field_node("classification"),
                 make_string_node("bacnet")),
)
validate_filter(root, defs)   # binds field positions, raises FilterError if wrong
assert evaluate(root, record)

assert format_csv_row(record) == "80,bacnet"
assert fieldset_to_json_line(record) == '{"sport":80,"classification":"bacnet"}'
```

A `FieldSet` built with a `FieldDefSet` insists that fields are added in the
order of their definitions. `FieldSet.repeated(FieldType.FIELDSET)` makes a
list whose elements must all be of one type.

Building an ICMP echo request:

```python
from netsweep.icmp_echo import build_echo, internet_checksum, parse_probe_args

payload = parse_probe_args("hex:5061796c6f6164")
assert payload == b"Payload"
message = build_echo(0x1234, 1, payload)
assert internet_checksum(message) == 0
```

Without probe arguments the payload is 20 zero bytes.

## Output files

`CsvOutput` and `JsonOutput` write to the path they are given, or to standard
output when the path is `None` or `"-"`; both are context managers.
`SortedCsvOutput` needs a real file path: on close it reads that file back
and writes the sorted copy to `processed_path` (by default
`output_processed.csv` in the current directory).

## Errors

Problems are reported with exceptions: `FieldsetError` for misuse of result
records or an unknown field in a translation, `FilterError` for filters that
name unknown fields or compare against the wrong type, `IcmpArgsError` (a
`ValueError`) for bad ICMP probe arguments, and `ValueError` for invalid port
numbers, short ICMP messages and CSV files that cannot be post-processed.

## What the package does not do

It sends and receives nothing: there is no packet capture, no raw socket and
no command-line program. It does not choose the order in which targets are
visited, has no lookup of output writers by name, and has no DNS probe. The
probe modules build payloads and turn received messages into records; the
Ethernet, IP and UDP layers around them are left to the caller.

## Running the tests

The test suite uses pytest and is installed with the `test` extra.