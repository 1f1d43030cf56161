from __future__ import annotations

import pytest

from keeper.utils.pagination import Paginator


def test_empty_sequence_still_has_one_page() -> None:
    paginator = Paginator([])

    assert paginator.total_pages == 1
    assert paginator.page_items() == []
    assert not paginator.has_previous
    assert not paginator.has_next


@pytest.mark.parametrize(
    ("count", "pages"),
    [(1, 1), (10, 1), (11, 2), (25, 3), (30, 3)],
)
def test_total_pages(count: int, pages: int) -> None:
    assert Paginator(range(count)).total_pages == pages


def test_page_items_slices_in_order() -> None:
    paginator = Paginator(range(25))

    assert paginator.page_items(0) == list(range(10))
    assert paginator.page_items(2) == [20, 21, 22, 23, 24]


def test_out_of_range_pages_are_empty() -> None:
    paginator = Paginator(range(5))

    assert paginator.page_items(3) == []
    assert paginator.page_items(-1) == []


def test_navigation_clamps_at_both_ends() -> None:
    paginator = Paginator(range(12), page_size=5)

    assert paginator.previous() == 0
    assert paginator.next() == 1
    assert paginator.offset == 5
    assert paginator.next() == 2
    assert paginator.next() == 2
    assert paginator.page_items() == [10, 11]
    assert not paginator.has_next
    assert paginator.previous() == 1


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Paginator([1], page_size=0)
