"""Page index and page size of the bookmark list."""

import logging
import math

from .state import ClientState

logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (12, 20, 32, 48)
DEFAULT_PAGE_SIZE = 12

# Longest page list shown before ranges collapse into ellipses
MAX_PAGE_CONTROLS = 7


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError(f"page size must be positive, got {page_size}")
    return math.ceil(max(total, 0) / page_size)


def page_window(current: int, total: int) -> list[int | None]:
    """Page numbers to display, with None marking an ellipsis.

    Never more than MAX_PAGE_CONTROLS entries: the first and last page are
    always present, plus the pages around the current one.
    """
    pages = list(range(1, total + 1))
    if total <= MAX_PAGE_CONTROLS:
        return pages
    if current <= 4:
        return pages[:5] + [None, total]
    if current >= total - 3:
        return [1, None] + pages[total - 5:]
    return [1, None, current - 1, current, current + 1, None, total]


class Paginator:
    def __init__(self, state: ClientState | None = None):
        self._state = state
        if state is not None:
            self.page_size = state.get_page_size(DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS)
        else:
            self.page_size = DEFAULT_PAGE_SIZE
        self.page = 1
        self.total = 0

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def set_total(self, total: int) -> None:
        """Record the server-reported match count and pull the page back into range."""
        self.total = max(total, 0)
        last = max(self.total_pages, 1)
        if self.page > last:
            logger.debug("Page %d out of range, moving to %d", self.page, last)
            self.page = last

    def go_to(self, page: int) -> int:
        self.page = min(max(page, 1), max(self.total_pages, 1))
        return self.page

    def next(self) -> bool:
        if not self.has_next:
            return False
        self.page += 1
        return True

    def previous(self) -> bool:
        if not self.has_previous:
            return False
        self.page -= 1
        return True

    def reset(self) -> None:
        self.page = 1

    def set_page_size(self, size: int) -> None:
        if size not in PAGE_SIZE_OPTIONS:
            raise ValueError(
                f"page size must be one of {', '.join(map(str, PAGE_SIZE_OPTIONS))}"
            )
        self.page_size = size
        self.page = 1
        if self._state is not None:
            self._state.set_page_size(size)

    def window(self) -> list[int | None]:
        return page_window(self.page, self.total_pages)
