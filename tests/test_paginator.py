"""
Tests for the bounded concurrent paginator.

The paginator is driven by a synthetic in-process API so every property
(completeness, termination, fault tolerance) is checked without a network.
"""
import asyncio

import httpx
import pytest

from insider_scanner.clients.paginator import MalformedPageError, PaginationError, Paginator


class SyntheticAPI:
    """Offset API over a fixed list of records."""

    def __init__(self, total: int, failing_offsets=(), malformed_offsets=(), endless: bool = False):
        self.records = list(range(total))
        self.failing_offsets = set(failing_offsets)
        self.malformed_offsets = set(malformed_offsets)
        self.endless = endless
        self.calls: list[int] = []
        self.active = 0
        self.peak = 0

    async def fetch_page(self, offset: int, limit: int):
        self.calls.append(offset)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0)
            if offset in self.failing_offsets:
                raise httpx.ConnectError("connection refused")
            if offset in self.malformed_offsets:
                return {"error": "rate limited"}
            if self.endless:
                return list(range(offset, offset + limit))
            return self.records[offset:offset + limit]
        finally:
            self.active -= 1


class TestCompleteness:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 5, 20])
    async def test_returns_every_record(self, concurrency):
        """
        GIVEN: 1234 records served in pages of 100
        WHEN: Paginating at different concurrency limits
        THEN: Exactly the 1234 records come back
        """
        api = SyntheticAPI(total=1234)
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=concurrency)

        records = await paginator.fetch_all()

        assert len(records) == 1234
        assert sorted(records) == api.records

    @pytest.mark.asyncio
    async def test_exact_multiple_of_page_size(self):
        api = SyntheticAPI(total=500)
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=3)

        records = await paginator.fetch_all()

        assert sorted(records) == api.records

    @pytest.mark.asyncio
    async def test_short_first_page_needs_no_workers(self):
        api = SyntheticAPI(total=42)
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=10)

        records = await paginator.fetch_all()

        assert records == api.records
        assert api.calls == [0]
        assert paginator.pages_requested == 1

    @pytest.mark.asyncio
    async def test_empty_result_set(self):
        api = SyntheticAPI(total=0)
        paginator = Paginator(api.fetch_page, page_size=100)

        assert await paginator.fetch_all() == []
        assert api.calls == [0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 4, 8])
    async def test_respects_concurrency_limit(self, concurrency):
        api = SyntheticAPI(total=3000)
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=concurrency)

        await paginator.fetch_all()

        assert api.peak <= concurrency

    @pytest.mark.asyncio
    async def test_no_offset_fetched_twice(self):
        api = SyntheticAPI(total=2500)
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=7)

        await paginator.fetch_all()

        assert len(api.calls) == len(set(api.calls))


class TestTermination:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 5, 20])
    async def test_record_cap_bounds_pages_fetched(self, concurrency):
        """
        GIVEN: An API that never runs out of full pages
        WHEN: A record cap of 1000 is set
        THEN: At most cap / page_size + concurrency pages are fetched
        """
        api = SyntheticAPI(total=0, endless=True)
        paginator = Paginator(api.fetch_page, page_size=100, max_records=1000, max_concurrency=concurrency)

        records = await paginator.fetch_all()

        assert len(records) == 1000
        assert len(api.calls) <= 1000 // 100 + concurrency

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 2, 5])
    async def test_record_cap_reached_past_failed_page(self, concurrency):
        """
        GIVEN: An API that never runs out of full pages, where offset 300 fails
        WHEN: A record cap of 1000 is set
        THEN: The scan continues past the gap until the cap is filled
        """
        api = SyntheticAPI(total=0, endless=True, failing_offsets={300})
        paginator = Paginator(api.fetch_page, page_size=100, max_records=1000, max_concurrency=concurrency)

        records = await paginator.fetch_all()

        assert len(records) == 1000
        assert not set(range(300, 400)) & set(records)
        assert len(api.calls) <= 1000 // 100 + concurrency + 1

    @pytest.mark.asyncio
    async def test_cap_smaller_than_first_page(self):
        api = SyntheticAPI(total=0, endless=True)
        paginator = Paginator(api.fetch_page, page_size=100, max_records=30)

        records = await paginator.fetch_all()

        assert len(records) == 30
        assert api.calls == [0]

    @pytest.mark.asyncio
    async def test_halts_after_consecutive_failures(self):
        """Every page after the first fails; the scan must still stop."""
        api = SyntheticAPI(total=0, endless=True)
        api.failing_offsets = {offset for offset in range(100, 100_000, 100)}
        paginator = Paginator(
            api.fetch_page,
            page_size=100,
            max_concurrency=3,
            max_consecutive_empty=4,
        )

        records = await paginator.fetch_all()

        assert records == list(range(100))
        assert len(api.calls) <= 1 + 4 + 3


class TestFaultTolerance:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 5, 20])
    async def test_failed_page_is_skipped(self, concurrency):
        """
        GIVEN: Ten pages where page index 3 always fails
        WHEN: Paginating
        THEN: The other nine pages' records are returned, no error raised
        """
        api = SyntheticAPI(total=950, failing_offsets={300})
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=concurrency)

        records = await paginator.fetch_all()

        expected = [r for r in api.records if not 300 <= r < 400]
        assert sorted(records) == expected

    @pytest.mark.asyncio
    async def test_malformed_page_is_treated_as_empty(self):
        api = SyntheticAPI(total=750, malformed_offsets={200})
        paginator = Paginator(api.fetch_page, page_size=100, max_concurrency=2)

        records = await paginator.fetch_all()

        assert sorted(records) == [r for r in api.records if not 200 <= r < 300]

    @pytest.mark.asyncio
    async def test_first_page_failure_is_fatal(self):
        api = SyntheticAPI(total=500, failing_offsets={0})
        paginator = Paginator(api.fetch_page, page_size=100)

        with pytest.raises(PaginationError) as exc_info:
            await paginator.fetch_all()

        assert exc_info.value.offset == 0
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_malformed_first_page_is_fatal(self):
        api = SyntheticAPI(total=500, malformed_offsets={0})
        paginator = Paginator(api.fetch_page, page_size=100)

        with pytest.raises(PaginationError) as exc_info:
            await paginator.fetch_all()

        assert isinstance(exc_info.value.__cause__, MalformedPageError)

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        async def fetch_page(offset, limit):
            if offset == 0:
                return list(range(limit))
            raise RuntimeError("bug in page handler")

        paginator = Paginator(fetch_page, page_size=10, max_concurrency=2)

        with pytest.raises(RuntimeError, match="bug in page handler"):
            await paginator.fetch_all()


class TestProgressCallback:

    @pytest.mark.asyncio
    async def test_reports_every_page(self):
        api = SyntheticAPI(total=350)
        seen = []
        paginator = Paginator(
            api.fetch_page,
            page_size=100,
            max_concurrency=2,
            on_page=lambda offset, count, total: seen.append((offset, count, total)),
        )

        await paginator.fetch_all()

        assert len(seen) == len(api.calls)
        assert seen[0] == (0, 100, 100)
        assert max(total for _, _, total in seen) == 350


class TestValidation:

    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValueError):
            Paginator(SyntheticAPI(0).fetch_page, page_size=0)

    def test_rejects_non_positive_concurrency(self):
        with pytest.raises(ValueError):
            Paginator(SyntheticAPI(0).fetch_page, page_size=10, max_concurrency=0)
