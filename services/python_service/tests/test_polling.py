import pytest

from postcraft.polling import PollExhausted, poll_until, retry_with_backoff

pytestmark = pytest.mark.unit


class Flaky:
    def __init__(self, failures, value="ok"):
        self.failures = list(failures)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.value


@pytest.mark.asyncio
async def test_retry_backoff_doubles_delay():
    delays = []

    async def sleep(s):
        delays.append(s)

    call = Flaky([ConnectionError("reset"), ConnectionError("reset")])
    result = await retry_with_backoff(call, should_retry=lambda e: True, max_attempts=3, base_delay_s=1.0, sleep=sleep)

    assert result == "ok"
    assert call.calls == 3
    assert delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_retry_stops_on_non_retryable():
    async def sleep(s):
        raise AssertionError("should not sleep")

    call = Flaky([ValueError("bad request")])
    with pytest.raises(ValueError):
        await retry_with_backoff(call, should_retry=lambda e: isinstance(e, ConnectionError), sleep=sleep)
    assert call.calls == 1


@pytest.mark.asyncio
async def test_retry_reraises_after_last_attempt():
    async def sleep(s):
        return None

    call = Flaky([ConnectionError("1"), ConnectionError("2"), ConnectionError("3"), ConnectionError("4")])
    with pytest.raises(ConnectionError, match="3"):
        await retry_with_backoff(call, should_retry=lambda e: True, max_attempts=3, sleep=sleep)
    assert call.calls == 3


@pytest.mark.asyncio
async def test_poll_returns_on_first_accepted_value():
    values = iter(["pending", "pending", "done", "never"])
    calls = []

    async def fetch():
        v = next(values)
        calls.append(v)
        return v

    sleeps = []

    async def sleep(s):
        sleeps.append(s)

    result = await poll_until(fetch, lambda v: v == "done", interval_s=1.0, max_attempts=10, sleep=sleep)
    assert result == "done"
    assert len(calls) == 3
    assert sleeps == [1.0, 1.0]


@pytest.mark.asyncio
async def test_poll_exhausts_after_max_attempts():
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        return "pending"

    async def sleep(s):
        return None

    with pytest.raises(PollExhausted) as info:
        await poll_until(fetch, lambda v: False, max_attempts=4, sleep=sleep)
    assert calls == 4
    assert info.value.attempts == 4
    assert info.value.last_value == "pending"
