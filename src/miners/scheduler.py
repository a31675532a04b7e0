"""
Batch Scheduler.

Runs an async worker over a list of items in consecutive chunks. Workers of a
chunk run concurrently and the next chunk starts only when every worker of
the current one has finished.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchOutcome(Generic[T, R]):
    """
    Result of one item.

    Attributes:
        item (T): The input item.
        result (Optional[R]): Worker result when it succeeded.
        error (Optional[BaseException]): Worker exception when it failed.
    """

    item: T
    result: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchScheduler:
    """
    Bounds the number of in-flight workers.

    With ``fail_fast`` the first failure of a chunk is raised once that chunk
    has finished and no further chunks run. Otherwise failures are isolated
    and reported per item.
    """

    def __init__(self, concurrency_limit: int, fail_fast: bool = False):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.concurrency_limit = concurrency_limit
        self.fail_fast = fail_fast

    async def run(
        self, items: Sequence[T], worker: Callable[[T], Awaitable[R]]
    ) -> List[BatchOutcome[T, R]]:
        """
        Run ``worker`` over ``items``.

        Args:
            items (Sequence[T]): Inputs.
            worker (Callable[[T], Awaitable[R]]): Coroutine function applied to each input.

        Returns:
            List[BatchOutcome[T, R]]: One outcome per input, in input order.
        """
        outcomes: List[BatchOutcome[T, R]] = []
        for start in range(0, len(items), self.concurrency_limit):
            chunk = items[start : start + self.concurrency_limit]
            results = await asyncio.gather(
                *(worker(item) for item in chunk), return_exceptions=True
            )
            for item, result in zip(chunk, results):
                # Cancellation and interpreter exits are never isolated
                if isinstance(result, BaseException) and not isinstance(result, Exception):
                    raise result
                if isinstance(result, Exception):
                    if self.fail_fast:
                        raise result
                    outcomes.append(BatchOutcome(item=item, error=result))
                else:
                    outcomes.append(BatchOutcome(item=item, result=result))
        return outcomes
