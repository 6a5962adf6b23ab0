"""Traversal of remote collections that are served one page at a time.

A page fetcher takes an opaque cursor and returns the items of that page plus
the cursor of the next one (``None`` on the last page). PaginatedFetch walks
the pages in order, either lazily while the caller consumes items, or all at
once via ``all()``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import Generic, NamedTuple, TypeVar

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")
CursorT = TypeVar("CursorT")


class Page(NamedTuple, Generic[T, CursorT]):
    """One page of a remote collection."""

    items: Sequence[T]
    next_cursor: CursorT | None


class PaginatedFetch(Generic[T, CursorT]):
    """Forward-only, single-pass sequence over every page of a remote collection.

    Pages are requested only when the previous one is exhausted, and items keep
    the order the origin returned them in. A failing page fetch propagates to
    the consumer unchanged.
    """

    def __init__(self, fetch_page: Callable[[CursorT], Page[T, CursorT]], first_cursor: CursorT) -> None:
        self._fetch_page: Callable[[CursorT], Page[T, CursorT]] = fetch_page
        self._first_cursor: CursorT = first_cursor
        self._consumed: bool = False

    def __iter__(self) -> Iterator[T]:
        if self._consumed:
            msg = "PaginatedFetch can only be iterated once"
            raise RuntimeError(msg)
        self._consumed = True
        return self._walk()

    def _walk(self) -> Iterator[T]:
        cursor: CursorT | None = self._first_cursor
        pages = 0
        while cursor is not None:
            page = self._fetch_page(cursor)
            pages += 1
            logger.debug(f"Fetched page {pages} with {len(page.items)} items")
            yield from page.items
            cursor = page.next_cursor

    def all(self) -> list[T]:
        """Fetch every page now and return all items in order."""
        return list(self)
