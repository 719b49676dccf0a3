"""Bounded fan-out helpers for external calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


async def call_with_timeout(awaitable: Awaitable[T], timeout: float | None) -> T:
    """Await *awaitable*, raising ``TimeoutError`` after *timeout* seconds (None = no limit)."""
    return await asyncio.wait_for(awaitable, timeout)


async def gather_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int,
    timeout: float | None = None,
) -> list[T | BaseException]:
    """Run every factory with at most *limit* calls in flight.

    Results come back in input order; failures are returned in place of the
    result (like ``asyncio.gather(..., return_exceptions=True)``) so callers
    can decide per item.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await call_with_timeout(factory(), timeout)

    return await asyncio.gather(*(_run(f) for f in factories), return_exceptions=True)
