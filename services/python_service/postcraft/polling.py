"""Bounded retry and polling primitives shared by the AI adapter and the autofill gateway."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class PollExhausted(Exception):
    """Raised by poll_until when the predicate never held."""

    def __init__(self, attempts: int, last_value=None):
        super().__init__(f"condition not met after {attempts} attempts")
        self.attempts = attempts
        self.last_value = last_value


async def retry_with_backoff(
    call: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[BaseException], bool],
    max_attempts: int = 3,
    base_delay_s: float = 1.0,
    sleep: Optional[Sleep] = None,
) -> T:
    """Run ``call`` up to ``max_attempts`` times.

    Only exceptions accepted by ``should_retry`` trigger another attempt; the
    wait before attempt ``n`` (0-based) is ``base_delay_s * 2 ** (n - 1)``.
    The last exception is re-raised once attempts run out.
    """
    sleep = sleep or asyncio.sleep
    attempt = 0
    while True:
        try:
            return await call()
        except Exception as e:
            if attempt + 1 >= max_attempts or not should_retry(e):
                raise
            delay = base_delay_s * (2 ** attempt)
            logger.warning(f"Transient failure (attempt {attempt + 1}/{max_attempts}), retrying in {delay:.1f}s: {e}")
            await sleep(delay)
            attempt += 1


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    *,
    interval_s: float = 1.0,
    max_attempts: int = 10,
    sleep: Optional[Sleep] = None,
) -> T:
    """Call ``fetch`` until ``predicate`` accepts its value, at most ``max_attempts`` times.

    Sleeps ``interval_s`` between calls (not after the last one) and raises
    PollExhausted when every attempt was rejected.
    """
    sleep = sleep or asyncio.sleep
    value = None
    for attempt in range(max_attempts):
        value = await fetch()
        if predicate(value):
            return value
        if attempt + 1 < max_attempts:
            await sleep(interval_s)
    raise PollExhausted(max_attempts, value)
