"""Bounded fan-out over a thread pool.

Used wherever one request turns into many independent store operations
(resolving or deleting a collection's contents).  At most *max_workers*
operations run at once; results come back in input order.  The first
failure wins: pending work is cancelled, already-running work is allowed to
finish, and the error is re-raised to the caller.  Nothing is rolled back.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Default fan-out width for store lookups
FANOUT_WIDTH_DEFAULT = 5


def map_bounded(
    fn: Callable[[T], R],
    items: Iterable[T],
    max_workers: int = FANOUT_WIDTH_DEFAULT,
) -> List[R]:
    """Apply *fn* to every item with at most *max_workers* calls in flight.

    Args:
        fn: Callable run on a worker thread. Must not share a Session
            with the caller.
        items: Inputs; consumed eagerly.
        max_workers: Concurrency bound (>= 1).

    Returns:
        ``[fn(item) for item in items]``, preserving input order.

    Raises:
        The first exception raised by any call, in completion order.
    """
    items = list(items)
    if not items:
        return []

    results: List[R] = [None] * len(items)  # type: ignore[list-item]
    workers = max(1, min(max_workers, len(items)))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures: dict[Future, int] = {
            executor.submit(fn, item): index for index, item in enumerate(items)
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                cancelled = sum(1 for pending in futures if pending.cancel())
                logger.error(
                    "Fan-out task failed; abandoning batch",
                    extra={"index": index, "total": len(items), "cancelled": cancelled, "error": str(e)},
                )
                raise

    return results
