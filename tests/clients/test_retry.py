"""Tests for RetryExecutor."""

import aiohttp
import pytest

from claudewire.clients.retry import RetryExecutor
from claudewire.core.errors import ClassifiedError, RequestValidationError, classify


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _flaky(failures, result="ok"):
    """A send function failing with each given error before succeeding."""
    calls = []
    failures = list(failures)

    async def send():
        calls.append(len(calls) + 1)
        if failures:
            raise failures.pop(0)
        return result

    return send, calls


class TestRetryExecutor:
    """Tests for RetryExecutor.run()."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """A successful send is called once and never sleeps."""
        sleep = FakeSleep()
        send, calls = _flaky([])

        result = await RetryExecutor(max_retries=3, retry_delay=1.0, sleep=sleep).run(send)

        assert result == "ok"
        assert calls == [1]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self):
        """Two retries allow three attempts with two sleeps between them."""
        sleep = FakeSleep()
        send, calls = _flaky([classify(500), classify(429)])

        result = await RetryExecutor(max_retries=2, retry_delay=0.5, sleep=sleep).run(send)

        assert result == "ok"
        assert calls == [1, 2, 3]
        assert sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self):
        """When all attempts fail the last error is raised unchanged."""
        sleep = FakeSleep()
        last = classify(503, "unavailable")
        send, calls = _flaky([classify(500), classify(500), last])

        with pytest.raises(ClassifiedError) as exc_info:
            await RetryExecutor(max_retries=2, retry_delay=0.1, sleep=sleep).run(send)

        assert exc_info.value is last
        assert calls == [1, 2, 3]
        # No sleep after the final attempt
        assert sleep.delays == [0.1, 0.1]

    @pytest.mark.asyncio
    async def test_transport_errors_retried(self):
        """Connection failures are retried like error statuses."""
        sleep = FakeSleep()
        send, calls = _flaky([aiohttp.ClientConnectionError("refused")])

        assert await RetryExecutor(max_retries=1, sleep=sleep).run(send) == "ok"
        assert calls == [1, 2]

    @pytest.mark.asyncio
    async def test_zero_retries_single_attempt(self):
        """With no retries a failure is raised after one attempt."""
        sleep = FakeSleep()
        send, calls = _flaky([classify(500)])

        with pytest.raises(ClassifiedError):
            await RetryExecutor(sleep=sleep).run(send)

        assert calls == [1]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_negative_settings_clamped(self):
        """Negative retries and delays behave as zero."""
        executor = RetryExecutor(max_retries=-3, retry_delay=-2.0)

        assert executor.max_retries == 0
        assert executor.retry_delay == 0.0

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates(self):
        """Errors outside retry_on are raised immediately."""
        sleep = FakeSleep()
        send, calls = _flaky([RequestValidationError("bad")])

        with pytest.raises(RequestValidationError):
            await RetryExecutor(max_retries=5, sleep=sleep).run(send)

        assert calls == [1]

    @pytest.mark.asyncio
    async def test_retry_logged(self, caplog):
        """Each retry logs a warning with the attempt count."""
        send, _ = _flaky([classify(429)])

        with caplog.at_level("WARNING", logger="claudewire.clients.retry"):
            executor = RetryExecutor(max_retries=2, sleep=FakeSleep())
            await executor.run(send, label="POST /v1/messages")

        assert "POST /v1/messages failed with ClassifiedError" in caplog.text
        assert "(attempt 1/2)" in caplog.text
