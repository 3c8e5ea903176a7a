"""Bounded fan-out helpers for per-artist metadata and show fetches.

The downstream providers each sit behind a process-wide throttle (see
:mod:`where2play.providers.http.rate_limited_fetcher`).  Fan-out on top of
that throttle is kept to a small ceiling per aggregation call so a single
request cannot queue dozens of calls ahead of every other user.

Two patterns are exposed:

1. **bounded_gather** -- ``asyncio.gather`` with a fresh semaphore per call.
   Each call gets its own ceiling; there is no module-level semaphore.
2. **gather_successes** -- the fan-out-then-merge pattern: run keyed
   coroutines, keep the successful results, log and drop failures.

Cancellation is never converted into a result: if any task ends in
``asyncio.CancelledError`` it is re-raised to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Hashable, TypeVar

import structlog

from where2play.utils.logging import get_logger

_T = TypeVar("_T")
_K = TypeVar("_K", bound=Hashable)

DEFAULT_FANOUT = 2

_logger: structlog.BoundLogger = get_logger(__name__)


async def bounded_gather(
    coros: list[Awaitable[_T]],
    limit: int = DEFAULT_FANOUT,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with at most *limit* in flight.

    Parameters
    ----------
    coros:
        Awaitable objects to execute.
    limit:
        Concurrency ceiling for this call only.
    return_exceptions:
        If ``True``, ordinary exceptions are returned in the results list
        rather than raised.  ``CancelledError`` is always raised.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    results = await asyncio.gather(
        *(_wrapped(c) for c in coros),
        return_exceptions=return_exceptions,
    )
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
    return results


async def gather_successes(
    calls: dict[_K, Awaitable[_T]],
    limit: int = DEFAULT_FANOUT,
    logger: structlog.BoundLogger | None = None,
    error_msg: str = "fanout_call_failed",
) -> dict[_K, _T]:
    """Run keyed awaitables with bounded concurrency and keep the successes.

    Failures are logged with their key and omitted from the returned dict,
    so one bad artist never aborts the whole aggregation.
    """
    if logger is None:
        logger = _logger

    keys = list(calls.keys())
    raw_results = await bounded_gather([calls[k] for k in keys], limit=limit)

    merged: dict[_K, Any] = {}
    for key, result in zip(keys, raw_results):
        if isinstance(result, BaseException):
            logger.warning(error_msg, key=str(key), error=str(result))
            continue
        merged[key] = result
    return merged
