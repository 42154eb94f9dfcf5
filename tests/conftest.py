"""Pytest configuration and fixtures for Chat Relay tests."""

import asyncio
import sys
from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
import yaml
from httpx import AsyncClient

# Add src to Python path
current_dir = Path(__file__).parent
src_dir = current_dir.parent / "src"
sys.path.insert(0, str(src_dir))

from test_utils import FakeCompletionClient, TEST_SYSTEM_PROMPT


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def recorded_sleeps():
    return []


@pytest.fixture
def fake_sleep(recorded_sleeps):
    """Sleep replacement that records the requested delay and yields once."""
    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)
        await asyncio.sleep(0)
    return _sleep


@pytest.fixture
def test_config_path(tmp_path) -> Path:
    """Config with pacing disabled and no log file."""
    config = {
        "settings": {
            "app_name": "Chat Relay Test",
            "log_level": "DEBUG",
            "log_color": False,
            "log_file_path": "",
        },
        "completion": {"system_prompt": TEST_SYSTEM_PROMPT, "history_limit": 10},
        "queue": {"max_attempts": 10, "base_delay": 0, "pacing_delay": 0},
        "cache": {"ttl_seconds": 300},
    }
    path = tmp_path / "config-test.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


@pytest.fixture
def page_transport():
    """Mock transport for outbound page fetches; tests register pages by URL."""
    pages = {}

    def handler(request: httpx.Request) -> httpx.Response:
        page = pages.get(str(request.url))
        if page is None:
            return httpx.Response(404, text="not found")
        status_code, html = page
        return httpx.Response(status_code, text=html, headers={"Content-Type": "text/html"})

    transport = httpx.MockTransport(handler)
    transport.pages = pages
    return transport


@pytest.fixture
def test_app(test_config_path, fake_client, page_transport):
    from main import create_app
    from core.extraction import PageFetcher

    return create_app(
        str(test_config_path),
        completion_client=fake_client,
        page_fetcher=PageFetcher(transport=page_transport),
    )


@pytest_asyncio.fixture
async def async_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the test application."""
    transport = httpx.ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
