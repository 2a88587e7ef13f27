from __future__ import annotations

from datetime import datetime

import pytest

from pageview_index.errors import RecordParseError
from pageview_index.records import (
    PageviewRecord,
    format_hour,
    format_record,
    parse_hour,
    parse_line,
)


def test_parse_line_reads_time_page_and_counter() -> None:
    record = parse_line("20160626-23\t10_Cloverfield_Lane\t475")

    assert record.time == datetime(2016, 6, 26, 23, 0)
    assert record.page == "10_Cloverfield_Lane"
    assert record.counter == 475


def test_format_record_uses_debug_text_layout() -> None:
    record = parse_line("20160626-23\t10_Cloverfield_Lane\t475")

    assert format_record(record) == "time:20160626-23,page:10_Cloverfield_Lane,counter:475."
    assert str(record) == "time:20160626-23,page:10_Cloverfield_Lane,counter:475."


def test_parse_line_ignores_single_trailing_line_terminator() -> None:
    assert parse_line("20160626-23\tPage\t1\n") == parse_line("20160626-23\tPage\t1")
    assert parse_line("20160626-23\tPage\t1\r\n") == parse_line("20160626-23\tPage\t1")


def test_parse_line_keeps_non_ascii_page_text() -> None:
    record = parse_line("20160101-00\tZürich_(Stadt)\t0")

    assert record.page == "Zürich_(Stadt)"
    assert record.counter == 0


@pytest.mark.parametrize(
    "line",
    [
        "20160626-23 10_Cloverfield_Lane 475",
        "20160626-23\t10_Cloverfield_Lane",
        "20160626-23\tA\tB\t475",
        "",
    ],
)
def test_parse_line_requires_exactly_two_tabs(line: str) -> None:
    with pytest.raises(RecordParseError, match="tab separators"):
        parse_line(line)


@pytest.mark.parametrize(
    "counter_text",
    ["475abc", "-5", "+5", " 475", "4 75", "", "4.5", "٤٧٥"],
)
def test_parse_line_requires_whole_field_counter(counter_text: str) -> None:
    with pytest.raises(RecordParseError) as excinfo:
        parse_line(f"20160626-23\tPage\t{counter_text}")

    assert excinfo.value.text == counter_text
    assert excinfo.value.reason == "Counter is not a non-negative integer"


def test_parse_line_rejects_counter_beyond_64_bits() -> None:
    with pytest.raises(RecordParseError, match="64 bits") as excinfo:
        parse_line("20160626-23\tPage\t18446744073709551616")

    assert excinfo.value.text == "18446744073709551616"


def test_parse_line_accepts_largest_64_bit_counter() -> None:
    assert parse_line("20160626-23\tPage\t18446744073709551615").counter == 2**64 - 1


def test_parse_line_rejects_empty_page() -> None:
    with pytest.raises(RecordParseError, match="Page name is empty"):
        parse_line("20160626-23\t\t475")


@pytest.mark.parametrize(
    "text",
    ["2016062623", "2016-06-26-23", "20160626-2", "20160626-230", "x0160626-23", "20160626-23 "],
)
def test_parse_hour_rejects_wrong_shape(text: str) -> None:
    with pytest.raises(RecordParseError) as excinfo:
        parse_hour(text)

    assert excinfo.value.text == text
    assert excinfo.value.expected == "%Y%m%d-%H"


@pytest.mark.parametrize("text", ["20161326-01", "20160230-01", "20160626-24"])
def test_parse_hour_rejects_impossible_calendar_values(text: str) -> None:
    with pytest.raises(RecordParseError, match="not a valid calendar hour"):
        parse_hour(text)


def test_parse_hour_and_format_hour_agree() -> None:
    parsed = parse_hour("20000229-05")

    assert parsed == datetime(2000, 2, 29, 5)
    assert format_hour(parsed) == "20000229-05"


def test_format_hour_zero_pads_small_years() -> None:
    assert format_hour(datetime(999, 1, 2, 3)) == "09990102-03"


def test_records_are_immutable() -> None:
    record = PageviewRecord(time=datetime(2016, 6, 26, 23), page="A", counter=1)

    with pytest.raises(AttributeError):
        record.counter = 2  # type: ignore[misc]
