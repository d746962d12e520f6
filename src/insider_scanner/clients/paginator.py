"""
Bounded concurrent pagination over offset-based APIs.

Offset APIs give no total count, the only end-of-data signal is a page that
comes back short. Page 0 is fetched on its own; if it is full, a fixed pool
of workers fetches the following pages while a single collector loop owns
the frontier and the accumulated records. Workers never touch shared state,
they hand their results back over a queue.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

# (offset, limit) -> decoded page body
PageFetcher = Callable[[int, int], Awaitable[Any]]

# (offset, records on this page, records accumulated so far)
ProgressCallback = Callable[[int, int, int], None]

# Failures a single page may suffer without aborting the scan
PAGE_ERRORS = (httpx.HTTPError, ValueError)


class PaginationError(Exception):
    """The first page of a paginated fetch could not be retrieved."""

    def __init__(self, offset: int, message: str):
        super().__init__(message)
        self.offset = offset


class MalformedPageError(ValueError):
    """A page body was not a list of records."""


@dataclass
class PageReport:
    """What a worker hands back to the collector for one offset."""
    offset: int
    records: list
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class Paginator:
    """
    Fetch every record behind an offset-paginated endpoint.

    Args:
        fetch_page: Coroutine function taking (offset, limit) and returning
            the decoded page body, which must be a list
        page_size: Records requested per page
        max_records: Optional overall cap; the result is truncated to it
        max_concurrency: Upper bound on simultaneous page requests
        max_consecutive_empty: Halt after this many empty or failed pages
            in a row
        on_page: Optional progress callback, never needed for correctness

    Record order in the result is not guaranteed.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        page_size: int,
        max_records: Optional[int] = None,
        max_concurrency: int = 10,
        max_consecutive_empty: int = 10,
        on_page: Optional[ProgressCallback] = None,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")

        self.fetch_page = fetch_page
        self.page_size = page_size
        self.max_records = max_records
        self.max_concurrency = max_concurrency
        self.max_consecutive_empty = max_consecutive_empty
        self.on_page = on_page

        self.pages_requested = 0

    async def fetch_all(self) -> list:
        """
        Fetch all records.

        Raises:
            PaginationError: If page 0 fails. Later page failures are
                absorbed and treated as empty pages.
        """
        self.pages_requested = 0

        try:
            first = await self._fetch(0)
        except PAGE_ERRORS as e:
            raise PaginationError(0, f"Failed to fetch first page: {e}") from e

        records = list(first)
        self._notify(0, len(first), len(records))

        if len(first) < self.page_size or self._cap_reached(len(records)):
            return self._truncate(records)

        await self._collect(records)

        logger.debug(f"Paginated fetch finished: {len(records)} records from {self.pages_requested} pages")
        return self._truncate(records)

    async def _fetch(self, offset: int) -> list:
        self.pages_requested += 1
        page = await self.fetch_page(offset, self.page_size)
        if not isinstance(page, list):
            raise MalformedPageError(
                f"Expected a list of records at offset {offset}, got {type(page).__name__}"
            )
        return page

    async def _worker(self, offsets: asyncio.Queue, reports: asyncio.Queue) -> None:
        while True:
            offset = await offsets.get()
            if offset is None:
                return

            try:
                page = await self._fetch(offset)
            except Exception as e:
                reports.put_nowait(PageReport(offset=offset, records=[], error=e))
            else:
                reports.put_nowait(PageReport(offset=offset, records=page))

    async def _collect(self, records: list) -> None:
        """Run the worker pool until the end of data, appending into records."""
        offsets: asyncio.Queue = asyncio.Queue()
        reports: asyncio.Queue = asyncio.Queue()
        workers = [
            asyncio.create_task(self._worker(offsets, reports))
            for _ in range(self.max_concurrency)
        ]

        frontier = self.page_size
        in_flight = 0
        end_offset: Optional[int] = None
        consecutive_empty = 0
        halted = False

        def can_dispatch() -> bool:
            if halted or end_offset is not None:
                return False
            if self.max_records is not None:
                return len(records) < self.max_records
            return True

        def dispatch() -> None:
            nonlocal frontier, in_flight
            offsets.put_nowait(frontier)
            frontier += self.page_size
            in_flight += 1

        try:
            while in_flight < self.max_concurrency and can_dispatch():
                dispatch()

            while in_flight > 0:
                report: PageReport = await reports.get()
                in_flight -= 1

                if report.failed:
                    if not isinstance(report.error, PAGE_ERRORS):
                        raise report.error
                    logger.warning(f"Page at offset {report.offset} failed, treating as empty: {report.error}")
                    consecutive_empty += 1
                else:
                    records.extend(report.records)
                    count = len(report.records)
                    consecutive_empty = consecutive_empty + 1 if count == 0 else 0
                    if count < self.page_size:
                        if end_offset is None or report.offset < end_offset:
                            end_offset = report.offset
                        logger.debug(f"Short page at offset {report.offset} ({count} records), end of data")

                self._notify(report.offset, len(report.records), len(records))

                if not halted and consecutive_empty >= self.max_consecutive_empty:
                    halted = True
                    logger.warning(
                        f"Halting scan after {consecutive_empty} consecutive empty or failed pages "
                        f"(frontier at offset {frontier})"
                    )

                # A failed page is not an end-of-data signal, keep scanning past the gap
                full = not report.failed and len(report.records) == self.page_size
                if (full or report.failed) and can_dispatch():
                    dispatch()
        finally:
            while not offsets.empty():
                offsets.get_nowait()
            for _ in workers:
                offsets.put_nowait(None)
            await asyncio.gather(*workers, return_exceptions=True)

    def _cap_reached(self, count: int) -> bool:
        return self.max_records is not None and count >= self.max_records

    def _truncate(self, records: list) -> list:
        if self.max_records is not None:
            return records[:self.max_records]
        return records

    def _notify(self, offset: int, count: int, total: int) -> None:
        if self.on_page:
            self.on_page(offset, count, total)
