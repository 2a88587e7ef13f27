from __future__ import annotations

import pytest

from pageview_index.errors import InvalidIntervalError
from pageview_index.index import PageviewIndex


@pytest.fixture
def index() -> PageviewIndex:
    built = PageviewIndex()
    built.build_index(
        [
            "20160626-03\tPage\t900",
            "20160626-00\tPage\t5",
            "20160626-02\tPage\t1",
            "20160626-01\tPage\t300",
            "20160626-01\tOther\t7",
        ]
    )
    return built


def test_top_k_returns_earliest_matches_not_highest_counters(index: PageviewIndex) -> None:
    top = index.top_k_range("Page", "20160626-00", "20160626-03", 2)

    assert [r.counter for r in top] == [5, 300]


def test_top_k_zero_returns_empty(index: PageviewIndex) -> None:
    assert index.top_k_range("Page", "20160626-00", "20160626-03", 0) == []


def test_top_k_larger_than_matches_returns_all_in_order(index: PageviewIndex) -> None:
    full = index.range("Page", "20160626-01", "20160626-03")
    top = index.top_k_range("Page", "20160626-01", "20160626-03", 50)

    assert top == full
    assert [r.counter for r in top] == [300, 1, 900]


@pytest.mark.parametrize("k", [0, 1, 2, 3, 4, 5, 10])
def test_top_k_size_is_min_of_k_and_match_count(index: PageviewIndex, k: int) -> None:
    full = index.range("Page", "20160626-00", "20160626-03")
    top = index.top_k_range("Page", "20160626-00", "20160626-03", k)

    assert len(top) == min(k, len(full))
    assert top == full[:k]


def test_top_k_unknown_page_is_empty(index: PageviewIndex) -> None:
    assert index.top_k_range("Missing", "20160626-00", "20160626-03", 3) == []


def test_top_k_rejects_negative_k(index: PageviewIndex) -> None:
    with pytest.raises(ValueError, match="non-negative"):
        index.top_k_range("Page", "20160626-00", "20160626-03", -1)


def test_top_k_propagates_inverted_interval(index: PageviewIndex) -> None:
    with pytest.raises(InvalidIntervalError):
        index.top_k_range("Page", "20160626-03", "20160626-00", 1)
