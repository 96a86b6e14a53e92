"""
Cooperative polling for results produced out of process.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from learnhub.utils.logger import logging

T = TypeVar("T")


async def poll_until_ready(
    fetch: Callable[[], Awaitable[Optional[T]]],
    max_attempts: int = 60,
    interval: float = 5.0,
    default: Any = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """
    Call ``fetch`` until it returns something other than None.

    Args:
        fetch: Coroutine function returning the result, or None if not ready
        max_attempts: Upper bound on fetch calls
        interval: Seconds to wait between attempts
        default: Returned when every attempt came back empty
        sleep: Awaitable delay function, replaced in tests

    Returns:
        The first non-None result, or ``default``
    """
    for attempt in range(1, max_attempts + 1):
        result = await fetch()
        if result is not None:
            logging.info(f"Result ready after {attempt} attempt(s)")
            return result

        if attempt < max_attempts:
            await sleep(interval)

    logging.warning(f"Gave up after {max_attempts} attempts, using default")
    return default
