"""
Page traversal for list endpoints.

Pages are requested one after another with an incrementing ``page`` number
until an empty page comes back or a trim function asks to stop. A failing
page ends the traversal and the items collected so far are returned.
"""

from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from config import logger
from exceptions import RequestError

T = TypeVar("T")

PER_PAGE = 100

PageFetcher = Callable[[int], Awaitable[List[T]]]
PageTrim = Callable[[List[T]], Tuple[List[T], bool]]


async def paginate(
    fetch_page: PageFetcher,
    resource: str,
    trim: Optional[PageTrim] = None,
) -> List[T]:
    """
    Collect every item of a paginated resource.

    Args:
        fetch_page (PageFetcher): Coroutine function returning the items of a page
        resource (str): Description used in log messages
        trim (Optional[PageTrim]): Receives each non-empty page and returns the
            items to keep and whether to stop after this page

    Returns:
        List[T]: Items in API order, possibly partial if a page request failed
    """
    items: List[T] = []
    page = 1
    while True:
        try:
            batch = await fetch_page(page)
        except RequestError as e:
            logger.warning(
                {
                    "message": "Page request failed, keeping partial result",
                    "resource": resource,
                    "page": page,
                    "collected": len(items),
                    "error": str(e),
                }
            )
            break

        if not batch:
            break

        stop = False
        if trim is not None:
            batch, stop = trim(batch)
        items.extend(batch)
        if stop:
            logger.debug(
                {"message": "Stopping pagination early", "resource": resource, "page": page}
            )
            break
        page += 1

    return items


def since_cutoff(cutoff: datetime, timestamp: Callable[[T], Optional[datetime]]) -> PageTrim:
    """
    Build a trim function for pages sorted newest first.

    Items earlier than ``cutoff`` are discarded; once a page holds any such
    item, deeper pages can only be older, so traversal stops there.

    Args:
        cutoff (datetime): Inclusive lower bound
        timestamp (Callable[[T], Optional[datetime]]): Extracts the sort timestamp

    Returns:
        PageTrim: Trim function for :func:`paginate`
    """

    def trim(batch: List[T]) -> Tuple[List[T], bool]:
        kept = [item for item in batch if _at_or_after(timestamp(item), cutoff)]
        return kept, len(kept) < len(batch)

    return trim


def _at_or_after(value: Optional[datetime], cutoff: datetime) -> bool:
    return value is not None and value >= cutoff
