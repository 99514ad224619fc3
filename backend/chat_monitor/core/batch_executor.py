"""
Bounded fan-out of company code lookups.

A fixed pool of ``min(concurrency, len(phone_numbers))`` worker tasks drains a
shared queue of phone numbers. Each worker resolves one number at a time, so
at most ``concurrency`` lookups are ever in flight. Results come back in
completion order, one per input phone number.
"""
import asyncio
import time
from typing import Awaitable, Callable, Iterable, List, Optional, Set
from loguru import logger

from .aggregator import summarize
from .classifier import error_result
from .schemas import BatchResult, CompanyCodeResult


ResolveFn = Callable[[str], Awaitable[CompanyCodeResult]]

DEADLINE_EXCEEDED_MESSAGE = "batch deadline exceeded"


async def execute_batch(
    phone_numbers: Iterable[str],
    resolve: ResolveFn,
    concurrency: int = 3,
    deadline: Optional[float] = None,
) -> BatchResult:
    """
    Resolve every phone number with at most ``concurrency`` lookups in flight.

    Args:
        phone_numbers: Distinct phone numbers; repeats are collapsed
        resolve: Lookup coroutine, normally ``CompanyLookupClient.resolve``
        concurrency: Maximum number of simultaneous lookups
        deadline: Seconds the whole batch may take; None waits for every lookup

    Returns:
        BatchResult with exactly one result per distinct phone number. When the
        deadline expires, lookups still running are cancelled and every number
        without a result is reported as ERROR.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    if deadline is not None and deadline <= 0:
        raise ValueError(f"deadline must be positive, got {deadline}")

    pending_numbers = list(dict.fromkeys(phone_numbers))
    if not pending_numbers:
        return BatchResult()

    start = time.monotonic()
    queue: "asyncio.Queue[str]" = asyncio.Queue()
    for phone_number in pending_numbers:
        queue.put_nowait(phone_number)

    results: List[CompanyCodeResult] = []
    completed: Set[str] = set()

    async def worker() -> None:
        while True:
            try:
                phone_number = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                result = await resolve(phone_number)
            except Exception as e:
                logger.exception(f"Lookup for {phone_number} raised instead of returning a result: {e}")
                result = error_result(phone_number, f"Lookup failed: {e}")
            results.append(result)
            completed.add(phone_number)

    worker_count = min(concurrency, len(pending_numbers))
    logger.info(f"Resolving company codes for {len(pending_numbers)} phone numbers with {worker_count} workers")

    tasks = [asyncio.create_task(worker()) for _ in range(worker_count)]
    try:
        done, still_running = await asyncio.wait(tasks, timeout=deadline)
    except asyncio.CancelledError:
        await _cancel_all(tasks)
        raise

    if still_running:
        await _cancel_all(still_running)
    for task in done:
        task.result()

    abandoned = [number for number in pending_numbers if number not in completed]
    if abandoned:
        logger.warning(
            f"Company code batch hit its {deadline}s deadline: "
            f"{len(completed)} resolved, {len(abandoned)} abandoned"
        )
        results.extend(error_result(number, DEADLINE_EXCEEDED_MESSAGE) for number in abandoned)

    batch = BatchResult(
        results=results,
        deadline_exceeded=bool(still_running),
        abandoned=len(abandoned),
        elapsed_ms=int((time.monotonic() - start) * 1000),
    )
    stats = summarize(batch.results)
    logger.info(
        f"Company code batch completed in {batch.elapsed_ms}ms: "
        f"{stats.successful}/{stats.total} successful, {stats.unknown} unknown, {stats.errors} errors"
    )
    return batch


async def _cancel_all(tasks) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
