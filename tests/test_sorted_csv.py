import pytest

from netsweep.fieldset import FieldSet
from netsweep.sorted_csv import (
    CsvRecord,
    SortedCsvOutput,
    parse_record,
    sort_csv_records,
)


def test_parse_record_with_rest():
    assert parse_record("1.2.3.4,100,x,y\n") == CsvRecord("1.2.3.4", 100, "x,y")


def test_parse_record_without_rest():
    assert parse_record("10.0.0.1,5\n") == CsvRecord("10.0.0.1", 5, None)


def test_parse_record_non_numeric_second_column():
    assert parse_record("a,abc,z").ip_src_num == 0


def test_parse_record_missing_columns():
    with pytest.raises(ValueError):
        parse_record("")
    with pytest.raises(ValueError):
        parse_record("only-one-column\n")


def test_sort_records_by_number():
    records = sort_csv_records(["b,30,q\n", "a,10\n", "c,20,r\n"])
    assert [r.ip_src_num for r in records] == [10, 20, 30]
    assert [r.saddr for r in records] == ["a", "c", "b"]


def _record(saddr, num, extra):
    fs = FieldSet()
    fs.add_string("saddr", saddr)
    fs.add_uint64("ip_src_num", num)
    fs.add_string("extra", extra)
    return fs


def test_close_writes_sorted_copy(tmp_path):
    raw = tmp_path / "out.csv"
    processed = tmp_path / "sorted.csv"
    out = SortedCsvOutput(str(raw), ["saddr", "ip_src_num", "extra"], True, str(processed))
    out.write(_record("9.9.9.9", 300, "c"))
    out.write(_record("1.1.1.1", 100, "a"))
    out.write(_record("5.5.5.5", 200, "b"))
    out.close()
    assert out.records_written == 3
    assert raw.read_text().splitlines()[1] == "9.9.9.9,300,c"
    assert processed.read_text() == (
        "saddr,ip_src_num,extra\n"
        "1.1.1.1,100,a\n"
        "5.5.5.5,200,b\n"
        "9.9.9.9,300,c\n"
    )


def test_close_is_idempotent(tmp_path):
    raw = tmp_path / "out.csv"
    processed = tmp_path / "sorted.csv"
    out = SortedCsvOutput(str(raw), ["saddr", "ip_src_num"], True, str(processed))
    out.close()
    out.close()
    assert processed.read_text() == "saddr,ip_src_num\n"


def test_close_without_header_fails_on_empty_file(tmp_path):
    raw = tmp_path / "out.csv"
    out = SortedCsvOutput(str(raw), [], False, str(tmp_path / "sorted.csv"))
    with pytest.raises(ValueError):
        out.close()


def test_stdout_cannot_be_post_processed(tmp_path):
    out = SortedCsvOutput(None, ["a"], False, str(tmp_path / "sorted.csv"))
    with pytest.raises(ValueError):
        out.close()