import pytest

from axis_browser.config.model import PaginationSettings
from axis_browser.core.pagination import page_window


def _make_settings(**overrides):
    values = dict(minimum_in_group=9, minimum_at_beginning=2, minimum_at_end=2)
    values.update(overrides)
    return PaginationSettings(**values)


def test_middle_page_of_twenty():
    window = page_window(10, 20, _make_settings())

    assert window.main == list(range(6, 15))
    assert window.first == [1, 2]
    assert window.last == [19, 20]
    assert window.left_ellipsis
    assert window.right_ellipsis


@pytest.mark.parametrize("page", [1, 2, 3, 4, 5])
def test_five_pages_are_absorbed_into_main(page):
    window = page_window(page, 5, _make_settings())

    assert window.main == [1, 2, 3, 4, 5]
    assert window.first == []
    assert window.last == []
    assert not window.left_ellipsis
    assert not window.right_ellipsis


@pytest.mark.parametrize("page", [1, 2])
def test_start_boundary(page):
    window = page_window(page, 20, _make_settings())

    assert window.main == list(range(1, 10))
    assert window.first == []
    assert not window.left_ellipsis
    assert window.last == [19, 20]
    assert window.right_ellipsis


@pytest.mark.parametrize("page", [19, 20])
def test_end_boundary(page):
    window = page_window(page, 20, _make_settings())

    assert window.main == list(range(12, 21))
    assert window.last == []
    assert not window.right_ellipsis
    assert window.first == [1, 2]
    assert window.left_ellipsis


def test_adjacent_first_range_is_absorbed():
    # main would start at 3, right after the first range [1, 2]
    window = page_window(7, 20, _make_settings())

    assert window.main[0] == 1
    assert window.first == []
    assert not window.left_ellipsis


def test_ranges_never_overlap():
    settings = _make_settings(minimum_in_group=5, minimum_at_beginning=3, minimum_at_end=1)
    for pages in range(1, 30):
        for page in range(1, pages + 1):
            window = page_window(page, pages, settings)
            numbers = window.first + window.main + window.last
            assert numbers == sorted(set(numbers))
            assert page in window.main
            assert numbers[0] == 1 and numbers[-1] == pages


def _make_quiet_settings(**overrides):
    quiet = {
        f"always_show_{link}": False
        for link in ("first", "rewind", "prev", "next", "forward", "last")
    }
    quiet.update(overrides)
    return _make_settings(**quiet)


def test_links_always_shown_by_default():
    window = page_window(1, 20, _make_settings(include_rewind=False))

    assert window.show_first and window.show_prev
    assert window.show_next and window.show_forward and window.show_last
    assert not window.show_rewind
    assert not window.has_prev and window.has_next


def test_rewind_and_forward_target_the_main_group_edges():
    window = page_window(10, 20, _make_settings())
    assert (window.rewind_page, window.forward_page) == (6, 14)

    last_page = page_window(20, 20, _make_settings())
    assert (last_page.rewind_page, last_page.forward_page) == (12, 20)


def test_links_follow_skipped_pages_when_not_always_shown():
    window = page_window(10, 20, _make_quiet_settings())

    # pages 1-2 and 19-20 are listed, so first/last links are redundant
    assert not window.show_first and not window.show_last
    assert window.show_rewind and window.show_forward
    assert not window.show_prev and not window.show_next

    start = page_window(1, 20, _make_quiet_settings())
    assert not start.show_first and not start.show_rewind and not start.show_prev
    assert start.show_forward and not start.show_last


def test_first_and_last_links_replace_empty_runs():
    window = page_window(10, 20, _make_quiet_settings(minimum_at_beginning=0, minimum_at_end=0))

    assert window.first == [] and window.last == []
    assert window.show_first and window.show_last


def test_prev_and_next_only_for_single_page_groups():
    window = page_window(10, 20, _make_quiet_settings(minimum_in_group=1))

    assert window.main == [10]
    assert window.show_prev and window.show_next
    assert (window.rewind_page, window.forward_page) == (10, 10)


def test_no_pages():
    window = page_window(0, 0, _make_settings())
    assert window.main == [] and window.first == [] and window.last == []
