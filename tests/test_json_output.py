import json

import pytest

from netsweep.fieldset import Field, FieldSet, FieldsetError, FieldType
from netsweep.json_output import (
    JsonOutput,
    field_to_json,
    fieldset_to_json,
    fieldset_to_json_line,
    repeated_to_json,
)


def _record():
    fs = FieldSet()
    fs.add_string("saddr", "192.0.2.1")
    fs.add_uint64("sport", 53)
    fs.add_bool("success", True)
    fs.add_null("icmp_type")
    fs.add_binary("raw", b"\x01\xab")
    return fs


def test_fieldset_to_json_skips_nulls():
    result = fieldset_to_json(_record())
    assert "icmp_type" not in result
    assert result["saddr"] == "192.0.2.1"
    assert result["sport"] == 53
    assert result["success"] is True


def test_binary_is_hex():
    assert fieldset_to_json(_record())["raw"] == "01ab"


def test_line_round_trip():
    fs = _record()
    assert json.loads(fieldset_to_json_line(fs)) == fieldset_to_json(fs)


def test_line_is_compact():
    line = fieldset_to_json_line(_record())
    assert " " not in line
    assert "\n" not in line


def test_slashes_escaped():
    fs = FieldSet()
    fs.add_string("path", "a/b")
    line = fieldset_to_json_line(fs)
    assert "\\/" in line
    assert json.loads(line)["path"] == "a/b"


def test_large_uint64_wraps_to_int64():
    fs = FieldSet()
    fs.add_uint64("big", (1 << 64) - 1)
    assert fieldset_to_json(fs)["big"] == -1


def test_nested_and_repeated():
    inner = FieldSet()
    inner.add_string("name", "example.com")
    inner.add_uint64("qtype", 1)
    items = FieldSet.repeated(FieldType.FIELDSET)
    items.add_fieldset(None, inner)
    nums = FieldSet.repeated(FieldType.UINT64)
    nums.add_uint64(None, 7)
    nums.add_uint64(None, 9)
    fs = FieldSet()
    fs.add_repeated("questions", items)
    fs.add_repeated("numbers", nums)
    result = fieldset_to_json(fs)
    assert result["questions"] == [{"name": "example.com", "qtype": 1}]
    assert result["numbers"] == [7, 9]
    assert repeated_to_json(nums) == [7, 9]


def test_field_to_json_null():
    assert field_to_json(Field("x", FieldType.NULL, None)) is None


def test_unknown_type_raises():
    with pytest.raises(FieldsetError):
        field_to_json(Field("x", FieldType.RESERVED, None))


def test_output_to_file(tmp_path):
    path = tmp_path / "out.json"
    with JsonOutput(str(path)) as out:
        out.write(_record())
        out.write(_record())
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert all(json.loads(line) == fieldset_to_json(_record()) for line in lines)


def test_output_to_stdout(capsys):
    out = JsonOutput("-")
    out.write(_record())
    out.close()
    out.write(_record())
    captured = capsys.readouterr().out.splitlines()
    assert [json.loads(line) for line in captured] == [fieldset_to_json(_record())]