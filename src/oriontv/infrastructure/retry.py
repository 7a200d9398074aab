# Hey future me - this is THE ONE retry primitive of the session sync!
#
# The app used to have "sleep 500ms, check again" loops copy-pasted in three
# places (cookie confirmation, post-OAuth verification, waiting for the server
# config). They all had the same shape: bounded attempts, fixed delay, stop on
# first success. They all had the same bug too: nothing could stop them. Here the
# wait between attempts races a cancel Event, so cancelling an OAuth attempt
# ends its verification loop right away instead of after 8 more cookie reads.
#
# USAGE:
#   result = await poll_until(
#       read_cookies,
#       lambda cookies: "auth" in cookies,
#       RetryPolicy(max_attempts=8, delay=0.9),
#       cancel_event=attempt.cancel_event,
#   )
#   if result.succeeded: ...
"""Bounded, cancellable polling."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and fixed delay between attempts."""

    max_attempts: int
    delay: float

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    @classmethod
    def for_timeout(cls, timeout: float, interval: float) -> RetryPolicy:
        """Policy that keeps checking every ``interval`` for about ``timeout`` seconds.

        The first check happens immediately, so a 3.0s / 0.1s policy makes 31 checks.
        """
        if interval <= 0:
            raise ValueError("interval must be > 0")
        return cls(max_attempts=math.ceil(timeout / interval) + 1, delay=interval)

    @property
    def budget_seconds(self) -> float:
        """Worst-case time spent waiting between attempts."""
        return (self.max_attempts - 1) * self.delay


@dataclass(frozen=True)
class PollResult(Generic[T]):
    """How a poll ended.

    Exactly one of ``succeeded`` / ``cancelled`` / exhausted (neither) holds.
    ``value`` is the last value read, even when the predicate never matched.
    """

    succeeded: bool
    attempts: int
    value: T | None = None
    cancelled: bool = False
    elapsed_ms: float = 0.0

    @property
    def exhausted(self) -> bool:
        return not self.succeeded and not self.cancelled


async def interruptible_sleep(
    delay: float, cancel_event: asyncio.Event | None = None
) -> bool:
    """Sleep for ``delay`` seconds unless the event fires first.

    Returns:
        True if the sleep was interrupted by the cancel event
    """
    if cancel_event is None:
        await asyncio.sleep(delay)
        return False
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True


async def poll_until(
    read: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    policy: RetryPolicy,
    cancel_event: asyncio.Event | None = None,
    label: str = "poll",
) -> PollResult[T]:
    """Call ``read`` until ``predicate`` accepts its value or the budget runs out.

    Hey future me - an exception raised by ``read`` is NOT retried, it
    propagates right away. Callers decide what a failed read means; the session
    check, for one, turns it into a logged-out downgrade.

    Args:
        read: Async callable producing the value to test
        predicate: Success test applied to each value read
        policy: Attempt budget and delay
        cancel_event: Optional event that aborts the poll (checked before every
            attempt and raced against every wait)
        label: Name used in log lines

    Returns:
        PollResult describing success, cancellation or exhaustion
    """
    start = time.monotonic()
    value: T | None = None

    def _elapsed() -> float:
        return round((time.monotonic() - start) * 1000, 1)

    for attempt in range(1, policy.max_attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("%s cancelled before attempt %d", label, attempt)
            return PollResult(
                succeeded=False,
                attempts=attempt - 1,
                value=value,
                cancelled=True,
                elapsed_ms=_elapsed(),
            )

        value = await read()
        matched = predicate(value)

        if matched:
            if attempt > 1:
                logger.debug("%s succeeded on attempt %d", label, attempt)
            return PollResult(
                succeeded=True, attempts=attempt, value=value, elapsed_ms=_elapsed()
            )

        if attempt < policy.max_attempts:
            if await interruptible_sleep(policy.delay, cancel_event):
                logger.debug("%s cancelled while waiting after attempt %d", label, attempt)
                return PollResult(
                    succeeded=False,
                    attempts=attempt,
                    value=value,
                    cancelled=True,
                    elapsed_ms=_elapsed(),
                )

    logger.debug(
        "%s exhausted after %d attempts (%.0fms)", label, policy.max_attempts, _elapsed()
    )
    return PollResult(
        succeeded=False,
        attempts=policy.max_attempts,
        value=value,
        elapsed_ms=_elapsed(),
    )
