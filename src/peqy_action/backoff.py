"""Exponential backoff between request attempts.

Attempt 1 failing waits 2 s, attempt 2 waits 4 s, attempt ``n`` waits
``2**n`` s. There is no jitter and no cap; ``max_attempts`` is bounded to
1-5 by configuration, so the longest single wait is 16 s.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from peqy_action.logging import get_logger

logger = get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


def delay_for_attempt(attempt: int) -> int:
    """Return the wait in milliseconds after a failed attempt.

    Args:
        attempt: 1-based number of the attempt that just completed

    Returns:
        ``2**attempt`` seconds expressed in milliseconds.

    Raises:
        ValueError: If attempt is less than 1
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return (2**attempt) * 1000


async def wait_before_retry(attempt: int, sleep: Sleeper = asyncio.sleep) -> int:
    """Sleep for the backoff delay of ``attempt`` and return it in ms.

    The sleep is fully awaited before returning so the next attempt never
    overlaps the wait.

    Args:
        attempt: 1-based number of the attempt that just failed
        sleep: Awaitable sleep function taking seconds

    Returns:
        The delay that was applied, in milliseconds.
    """
    delay_ms = delay_for_attempt(attempt)
    logger.info("api_retry_backoff", attempt=attempt, backoff_seconds=delay_ms // 1000)
    await sleep(delay_ms / 1000)
    return delay_ms
