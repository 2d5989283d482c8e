# ngram_load/pipeline/runner.py
"""Sequential or thread-pooled execution of partition work."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type

from tqdm import tqdm

from ngram_load.naming.partition import AnyKey
from ngram_load.pipeline.worker import PartitionResult

logger = logging.getLogger(__name__)

__all__ = ["process_partitions"]

PartitionFn = Callable[[int, AnyKey], PartitionResult]


def process_partitions(
        keys: Iterable[AnyKey],
        work_fn: PartitionFn,
        *,
        workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
        progress: bool = True,
        executor_class: Type = ThreadPoolExecutor,
) -> Tuple[List[PartitionResult], int]:
    """
    Apply ``work_fn`` to every key and collect the results.

    With ``workers == 1`` partitions run inline, one after another, in
    enumeration order. With more workers they run on a bounded pool with
    at most ``2 * workers`` partitions in flight. Either way the returned
    results are sorted by enumeration index.

    Args:
        keys: Partition keys in enumeration order
        work_fn: Called as ``work_fn(index, key)``; must not raise
        workers: Number of concurrent partitions
        cancel_event: Checked before each partition is started
        progress: Show a tqdm progress bar
        executor_class: Pool class used when workers > 1

    Returns:
        (results, skipped) where skipped counts partitions never started
        because of cancellation
    """
    keys = list(keys)
    results: List[PartitionResult] = []
    skipped = 0

    def _cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def _record(res: PartitionResult) -> None:
        nonlocal skipped
        if res.skipped:
            skipped += 1
        else:
            results.append(res)

    with tqdm(
            total=len(keys),
            desc="Submitting Partitions",
            unit="jobs",
            colour="blue",
            disable=not progress,
    ) as pbar:
        if workers <= 1:
            for idx, key in enumerate(keys):
                if _cancelled():
                    skipped += len(keys) - idx
                    logger.info("Batch cancelled; %d partitions not started", len(keys) - idx)
                    break
                _record(work_fn(idx, key))
                pbar.update(1)
        else:
            with executor_class(max_workers=workers) as executor:
                it = iter(enumerate(keys))
                futures: Dict[Future, Tuple[int, AnyKey]] = {}
                max_in_flight = max(1, workers * 2)
                submitted = 0

                def submit_next(n: int = 1) -> None:
                    """Submit up to n more partitions unless cancelled."""
                    nonlocal submitted
                    for _ in range(n):
                        if _cancelled():
                            return
                        try:
                            idx, key = next(it)
                        except StopIteration:
                            return
                        futures[executor.submit(work_fn, idx, key)] = (idx, key)
                        submitted += 1

                submit_next(max_in_flight)

                while futures:
                    done, _ = wait(futures.keys(), return_when=FIRST_COMPLETED)
                    for fut in done:
                        idx, key = futures.pop(fut)
                        try:
                            _record(fut.result())
                        except Exception as exc:
                            logger.error("Worker crashed on %s: %s", key, exc)
                            _record(PartitionResult(idx, key, error=exc))
                        finally:
                            pbar.update(1)
                    submit_next(len(done))

                not_started = len(keys) - submitted
                if not_started:
                    skipped += not_started
                    logger.info("Batch cancelled; %d partitions not started", not_started)

    results.sort(key=lambda r: r.index)
    return results, skipped
