from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_batch(
    items: Sequence[T],
    worker: Callable[[int, T], R],
    *,
    max_workers: int = 4,
) -> List[Optional[R]]:
    """
    Run ``worker(index, item)`` for every item on a bounded thread pool and
    return the results in item order.

    The call returns only once every item has settled.  Workers are expected
    to handle their own failures; an exception escaping a worker is logged
    and leaves ``None`` at that index.
    """
    results: List[Optional[R]] = [None] * len(items)
    if not items:
        return results

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items)))) as executor:
        futures = {executor.submit(worker, idx, item): idx for idx, item in enumerate(items)}
        for future in as_completed(futures):
            idx = futures[future]
            try:
                results[idx] = future.result()
            except Exception:
                logger.exception("Unhandled error in batch item %d", idx)
    return results
