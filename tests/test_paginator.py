from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from exceptions import RequestError
from miners.paginator import paginate, since_cutoff

CUTOFF = datetime(2024, 5, 1, tzinfo=timezone.utc)


def pages(*batches):
    """Page fetcher returning the given batches for pages 1..n."""
    return AsyncMock(side_effect=list(batches))


@pytest.mark.asyncio
async def test_collects_until_empty_page():
    fetch = pages([1, 2], [3], [])
    items = await paginate(fetch, "numbers")

    assert items == [1, 2, 3]
    assert [c.args[0] for c in fetch.call_args_list] == [1, 2, 3]


@pytest.mark.asyncio
async def test_empty_first_page():
    fetch = pages([])
    assert await paginate(fetch, "numbers") == []
    fetch.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_failed_page_returns_partial_result():
    """A page failure stops traversal and keeps what was collected."""
    fetch = pages([1, 2], RequestError("boom", 500))
    items = await paginate(fetch, "numbers")

    assert items == [1, 2]
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_non_request_errors_propagate():
    fetch = pages([1], KeyError("bug"))
    with pytest.raises(KeyError):
        await paginate(fetch, "numbers")


@pytest.mark.asyncio
async def test_trim_stops_early_without_fetching_deeper_pages():
    """Once a page crosses the cutoff no further page is requested."""
    newer = CUTOFF + timedelta(days=1)
    older = CUTOFF - timedelta(seconds=1)
    fetch = pages([{"t": newer}, {"t": newer}], [{"t": CUTOFF}, {"t": older}], [{"t": newer}])

    items = await paginate(fetch, "pulls", trim=since_cutoff(CUTOFF, lambda item: item["t"]))

    assert [item["t"] for item in items] == [newer, newer, CUTOFF]
    assert fetch.await_count == 2


def test_since_cutoff_is_inclusive():
    trim = since_cutoff(CUTOFF, lambda t: t)
    kept, stop = trim([CUTOFF + timedelta(hours=1), CUTOFF])
    assert kept == [CUTOFF + timedelta(hours=1), CUTOFF]
    assert stop is False


def test_since_cutoff_drops_missing_timestamps():
    trim = since_cutoff(CUTOFF, lambda t: t)
    kept, stop = trim([CUTOFF, None])
    assert kept == [CUTOFF]
    assert stop is True
