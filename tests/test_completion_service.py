"""
Tests for the completion service: cache in front of the queue.
"""

import asyncio

import pytest

from caching import ResponseCache
from core.completion import CompletionService, RetryPolicy, SingleFlightQueue
from test_utils import FakeClock, FakeCompletionClient, RecordingSink, make_request, unauthorized


def build_service(client, clock=None):
    queue = SingleFlightQueue(RetryPolicy(client, base_delay=0), pacing_delay=0)
    cache = ResponseCache(ttl_seconds=300, clock=clock or FakeClock())
    return CompletionService(queue, cache, client)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestCompletionService:

    @pytest.mark.asyncio
    async def test_repeat_within_ttl_served_from_cache(self):
        client = FakeCompletionClient(outcomes=[["The answer"]])
        service = build_service(client)
        request = make_request("What is it?")

        assert service.lookup(request) is None
        await service.submit(request, RecordingSink())
        await settle()

        assert service.lookup(make_request("What is it?")) == "The answer"
        assert len(client.calls) == 1
        assert service.stats.cache_hits == 1

    @pytest.mark.asyncio
    async def test_expired_entry_invokes_client_again(self):
        clock = FakeClock()
        client = FakeCompletionClient(outcomes=[["first"], ["second"]])
        service = build_service(client, clock)
        request = make_request("again")

        await service.submit(request, RecordingSink())
        await settle()
        clock.advance(301)

        assert service.lookup(request) is None
        assert await service.submit(request, RecordingSink()) == "second"
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_failed_entry_is_not_cached(self):
        client = FakeCompletionClient(outcomes=[unauthorized()])
        service = build_service(client)
        request = make_request()

        with pytest.raises(Exception):
            await service.submit(request, RecordingSink())
        await settle()

        assert service.lookup(request) is None
        assert len(service.cache) == 0

    @pytest.mark.asyncio
    async def test_stats_report_queue_and_cache(self):
        client = FakeCompletionClient()
        service = build_service(client)
        await service.submit(make_request(), RecordingSink())
        await settle()

        stats = service.get_stats()
        assert stats["queued_requests"] == 1
        assert stats["cache_entries"] == 1
        assert stats["pending"] == 0
        assert stats["retries"] == 0

    def test_is_configured_follows_client(self):
        assert build_service(FakeCompletionClient(is_configured=False)).is_configured is False
        assert build_service(FakeCompletionClient()).is_configured is True
