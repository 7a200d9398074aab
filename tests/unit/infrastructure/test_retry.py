"""Tests for the bounded, cancellable polling primitive."""

import asyncio

import pytest

from oriontv.infrastructure.retry import RetryPolicy, interruptible_sleep, poll_until


class Counter:
    """Async reader returning a scripted sequence of values."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        value = self.values[min(self.calls, len(self.values)) - 1]
        if isinstance(value, Exception):
            raise value
        return value


class TestRetryPolicy:
    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0, delay=0.1)

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=1, delay=-1)

    def test_for_timeout_checks_immediately_and_at_each_interval(self) -> None:
        policy = RetryPolicy.for_timeout(1.0, 0.25)

        assert policy.max_attempts == 5
        assert policy.delay == 0.25
        assert policy.budget_seconds == 1.0

    def test_for_timeout_rejects_zero_interval(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy.for_timeout(1.0, 0)


class TestPollUntil:
    async def test_succeeds_on_later_attempt(self) -> None:
        reader = Counter([False, False, True])

        result = await poll_until(reader, bool, RetryPolicy(max_attempts=8, delay=0))

        assert result.succeeded is True
        assert result.attempts == 3
        assert result.value is True
        assert reader.calls == 3

    async def test_exhausts_budget(self) -> None:
        reader = Counter([{}])

        result = await poll_until(reader, bool, RetryPolicy(max_attempts=4, delay=0))

        assert result.exhausted is True
        assert result.succeeded is False
        assert result.cancelled is False
        assert result.attempts == 4
        assert result.value == {}
        assert reader.calls == 4

    async def test_cancelled_before_first_attempt(self) -> None:
        reader = Counter([True])
        cancel = asyncio.Event()
        cancel.set()

        result = await poll_until(
            reader, bool, RetryPolicy(max_attempts=3, delay=0), cancel_event=cancel
        )

        assert result.cancelled is True
        assert result.attempts == 0
        assert reader.calls == 0

    async def test_cancel_interrupts_the_wait(self) -> None:
        reader = Counter([False])
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, cancel.set)

        result = await asyncio.wait_for(
            poll_until(reader, bool, RetryPolicy(max_attempts=8, delay=5.0), cancel_event=cancel),
            timeout=2.0,
        )

        assert result.cancelled is True
        assert result.attempts == 1
        assert reader.calls == 1

    async def test_read_exception_propagates(self) -> None:
        reader = Counter([ConnectionError("blip"), True])

        with pytest.raises(ConnectionError):
            await poll_until(reader, bool, RetryPolicy(max_attempts=3, delay=0))
        assert reader.calls == 1


class TestInterruptibleSleep:
    async def test_without_event(self) -> None:
        assert await interruptible_sleep(0) is False

    async def test_already_set_event_returns_immediately(self) -> None:
        event = asyncio.Event()
        event.set()

        assert await interruptible_sleep(10.0, event) is True

    async def test_timeout_elapses(self) -> None:
        assert await interruptible_sleep(0.01, asyncio.Event()) is False

    async def test_event_set_during_sleep(self) -> None:
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, event.set)

        assert await asyncio.wait_for(interruptible_sleep(5.0, event), timeout=2.0) is True
