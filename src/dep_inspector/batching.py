"""Windowed, bounded-concurrency execution with explicit per-item outcomes."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

import structlog

log = structlog.get_logger("dep_inspector.batching")

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A worker call that produced a value."""

    value: T


@dataclass(frozen=True)
class Failed:
    """A worker call that did not produce a value."""

    reason: str = ""


Outcome = Union[Ok[T], Failed]


async def run_in_windows(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T], Awaitable[Outcome[R]]],
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> list[R]:
    """Apply *worker* to *items*, *limit* at a time.

    Items are taken in consecutive windows of *limit*; every call in a window
    runs concurrently and the whole window settles before the next one
    starts, so at most *limit* calls are ever in flight.  ``Failed`` outcomes
    are dropped from the result.  A worker that raises instead of returning
    ``Failed`` is logged and dropped the same way.  Cancellation is not
    swallowed.  *on_progress* receives (done, total) after each window.
    """
    if limit < 1:
        raise ValueError(f"concurrency limit must be >= 1, got {limit}")

    results: list[R] = []
    for start in range(0, len(items), limit):
        window = items[start:start + limit]
        outcomes = await asyncio.gather(
            *(worker(item) for item in window), return_exceptions=True
        )
        for item, outcome in zip(window, outcomes):
            if isinstance(outcome, Ok):
                results.append(outcome.value)
            elif isinstance(outcome, Failed):
                continue
            elif isinstance(outcome, Exception):
                log.warning(
                    "batching.worker_raised",
                    item=repr(item),
                    error=repr(outcome),
                )
            elif isinstance(outcome, BaseException):
                raise outcome
        if on_progress is not None:
            on_progress(start + len(window), len(items))
    return results
