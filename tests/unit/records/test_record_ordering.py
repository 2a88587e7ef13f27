from __future__ import annotations

from datetime import datetime

from pageview_index.records import (
    PageviewRecord,
    compare_records,
    page_prefix_key,
    record_sort_key,
)


def _record(page: str, hour: int, counter: int = 1) -> PageviewRecord:
    return PageviewRecord(time=datetime(2016, 6, 26, hour), page=page, counter=counter)


def test_page_orders_before_time() -> None:
    early_b = _record("B", 1)
    late_a = _record("A", 23)

    assert compare_records(late_a, early_b) == -1
    assert compare_records(early_b, late_a) == 1


def test_time_breaks_ties_within_a_page() -> None:
    assert compare_records(_record("A", 1), _record("A", 2)) == -1
    assert compare_records(_record("A", 2), _record("A", 1)) == 1


def test_counter_is_not_part_of_ordering() -> None:
    low = _record("A", 5, counter=1)
    high = _record("A", 5, counter=999)

    assert compare_records(low, high) == 0
    assert record_sort_key(low) == record_sort_key(high)
    assert low != high


def test_page_order_is_codepoint_order() -> None:
    pages = ["b", "B", "a", "_", "Ä", "A"]
    records = sorted((_record(page, 0) for page in pages), key=record_sort_key)

    assert [record.page for record in records] == sorted(pages)
    assert [record.page for record in records] == ["A", "B", "_", "a", "b", "Ä"]


def test_page_prefix_key_is_prefix_of_sort_key() -> None:
    record = _record("Main_Page", 7)

    assert page_prefix_key(record) == ("Main_Page",)
    assert record_sort_key(record)[: len(page_prefix_key(record))] == page_prefix_key(record)
