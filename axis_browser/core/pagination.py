from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from axis_browser.config.model import PaginationSettings


@dataclass(frozen=True)
class PageWindow:
    """
    Page numbers to render in navigation controls.

    ``first``, ``main`` and ``last`` are disjoint, ascending and in that order.
    An ellipsis flag is set only when pages are skipped between two ranges.
    """
    page: int
    pages: int
    first: List[int] = field(default_factory=list)
    main: List[int] = field(default_factory=list)
    last: List[int] = field(default_factory=list)
    left_ellipsis: bool = False
    right_ellipsis: bool = False
    rewind_page: int = 0
    forward_page: int = 0
    show_first: bool = False
    show_rewind: bool = False
    show_prev: bool = False
    show_next: bool = False
    show_forward: bool = False
    show_last: bool = False

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return 0 < self.page < self.pages


def page_window(page: int, pages: int, settings: PaginationSettings) -> PageWindow:
    """
    Split ``1..pages`` into first/main/last ranges around ``page``.

    The main window holds ``minimum_in_group`` pages centred on ``page``,
    shifted (not shrunk) at either end. It absorbs the first range when
    ``lower <= minimum_at_beginning + 1`` and the last range when
    ``upper >= pages - minimum_at_end``, so ranges never overlap or touch.
    """
    if pages < 1:
        return PageWindow(page=0, pages=0)
    page = max(1, min(page, pages))

    group = max(1, min(settings.minimum_in_group, pages))
    lower = page - (group - 1) // 2
    upper = lower + group - 1
    if lower < 1:
        lower, upper = 1, group
    if upper > pages:
        lower, upper = pages - group + 1, pages

    at_beginning = settings.minimum_at_beginning
    at_end = settings.minimum_at_end
    if lower <= at_beginning + 1:
        lower = 1
    if upper >= pages - at_end:
        upper = pages

    # the first and last runs stay listed beside the main group, even mid-range,
    # until the main group absorbs them
    first = list(range(1, at_beginning + 1)) if lower > 1 else []
    last = list(range(pages - at_end + 1, pages + 1)) if upper < pages else []

    left_edge = first[-1] if first else 0
    right_edge = last[0] if last else pages + 1
    left_ellipsis = lower > left_edge + 1
    right_ellipsis = upper < right_edge - 1

    stepwise = settings.minimum_in_group <= 1

    def show(include: bool, always: bool, needed: bool) -> bool:
        return include and (always or needed)

    # without always_show_*, first/last links stand in for a run that lists nothing
    return PageWindow(
        page=page,
        pages=pages,
        first=first,
        main=list(range(lower, upper + 1)),
        last=last,
        left_ellipsis=left_ellipsis,
        right_ellipsis=right_ellipsis,
        rewind_page=lower,
        forward_page=upper,
        show_first=show(settings.include_first, settings.always_show_first, not first and lower > 1),
        show_rewind=show(settings.include_rewind, settings.always_show_rewind, left_ellipsis),
        show_prev=show(settings.include_prev, settings.always_show_prev, left_ellipsis and stepwise),
        show_next=show(settings.include_next, settings.always_show_next, right_ellipsis and stepwise),
        show_forward=show(settings.include_forward, settings.always_show_forward, right_ellipsis),
        show_last=show(settings.include_last, settings.always_show_last, not last and upper < pages),
    )
