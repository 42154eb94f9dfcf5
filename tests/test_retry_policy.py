"""
Tests for the rate-limit retry policy around completion stream establishment.
"""

import pytest

from core.completion import CompletionError, FailureKind, RetryPolicy, RetryState
from test_utils import FakeCompletionClient, make_request, rate_limited, unauthorized


async def collect(stream):
    return [fragment async for fragment in stream]


class TestRetryPolicy:

    @pytest.mark.asyncio
    async def test_success_after_nine_rate_limits(self, fake_sleep, recorded_sleeps):
        """Rate limited on attempts 0..8, success on attempt 9."""
        client = FakeCompletionClient(outcomes=[rate_limited() for _ in range(9)] + [["done"]])
        policy = RetryPolicy(client, sleep=fake_sleep)

        stream = await policy.execute(make_request())

        assert await collect(stream) == ["done"]
        assert len(client.calls) == 10
        assert policy.total_retries == 9
        assert recorded_sleeps == [0.5 * 2 ** attempt for attempt in range(9)]
        assert sum(recorded_sleeps) * 1000 == 255500

    @pytest.mark.asyncio
    async def test_ten_rate_limits_are_terminal(self, fake_sleep, recorded_sleeps):
        client = FakeCompletionClient(outcomes=[rate_limited() for _ in range(11)])
        policy = RetryPolicy(client, sleep=fake_sleep)

        with pytest.raises(CompletionError) as exc_info:
            await policy.execute(make_request())

        assert exc_info.value.kind is FailureKind.RATE_LIMITED
        assert exc_info.value.status_code == 429
        assert exc_info.value.attempts == 10
        # No eleventh attempt
        assert len(client.calls) == 10
        assert len(recorded_sleeps) == 9

    @pytest.mark.asyncio
    async def test_auth_failure_is_not_retried(self, fake_sleep, recorded_sleeps):
        client = FakeCompletionClient(outcomes=[unauthorized(), ["never"]])
        policy = RetryPolicy(client, sleep=fake_sleep)

        with pytest.raises(CompletionError) as exc_info:
            await policy.execute(make_request())

        assert exc_info.value.kind is FailureKind.AUTH_FAILURE
        assert exc_info.value.status_code == 401
        assert len(client.calls) == 1
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_other_failures_are_not_retried(self, fake_sleep, recorded_sleeps):
        client = FakeCompletionClient(outcomes=[RuntimeError("boom")])
        policy = RetryPolicy(client, sleep=fake_sleep)

        with pytest.raises(CompletionError) as exc_info:
            await policy.execute(make_request())

        assert exc_info.value.kind is FailureKind.UPSTREAM_ERROR
        assert exc_info.value.status_code == 500
        assert recorded_sleeps == []

    def test_backoff_doubles_from_base_delay(self):
        policy = RetryPolicy(FakeCompletionClient())
        assert [policy.backoff_delay(i) for i in (0, 1, 2, 9)] == [0.5, 1.0, 2.0, 256.0]

    def test_retry_state_limit(self):
        assert RetryState(attempt_count=8).can_retry
        assert not RetryState(attempt_count=9).can_retry
