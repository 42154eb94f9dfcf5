"""
Tests for page fetching and text extraction. Outbound HTTP is mocked with respx.
"""

import httpx
import pytest
import respx

from core.extraction import PageFetcher, extract_text, normalize_url
from errors import (
    AccessDeniedError,
    ContentRejectedError,
    FetchTimeoutError,
    InvalidRequestError,
    InvalidURLError,
    PageFetchError,
    PageNotFoundError,
    SiteNotFoundError,
    SiteUnreachableError,
    UpstreamSiteError,
)
from models import ErrorType

ARTICLE_HTML = """
<html>
  <head><title>Test</title><style>body { color: red; }</style></head>
  <body>
    <header>Site header</header>
    <nav>Home | About</nav>
    <main>
      <h1>Release notes</h1>
      <p>The relay now   retries
         rate-limited requests.</p>
      <script>console.log("tracking")</script>
    </main>
    <footer>Copyright</footer>
  </body>
</html>
"""


class TestNormalizeUrl:

    def test_bare_host_gets_https(self):
        assert normalize_url("example.com/page") == "https://example.com/page"

    def test_http_url_kept(self):
        assert normalize_url("  http://example.com/a  ") == "http://example.com/a"

    def test_empty_url_rejected(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            normalize_url("   ")
        assert exc_info.value.message == "URL is required"

    def test_url_without_host_rejected(self):
        with pytest.raises(InvalidURLError):
            normalize_url("http://")


class TestExtractText:

    def test_main_content_only(self):
        assert extract_text(ARTICLE_HTML) == "Release notes The relay now retries rate-limited requests."

    def test_falls_back_to_body(self):
        html = "<html><body><div>Plain body text here</div><footer>skip</footer></body></html>"
        assert extract_text(html) == "Plain body text here"

    def test_content_class_selector(self):
        html = '<body><div class="sidebar">side</div><div class="content">Main text</div></body>'
        assert extract_text(html) == "Main text"


class TestPageFetcher:

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_success(self):
        respx.get("https://example.com/article").mock(return_value=httpx.Response(200, text=ARTICLE_HTML))

        page = await PageFetcher().fetch_page_text("example.com/article")

        assert page.url == "https://example.com/article"
        assert page.text.startswith("Release notes")

    @pytest.mark.asyncio
    @respx.mock
    async def test_follows_redirects(self):
        respx.get("https://example.com/old").mock(
            return_value=httpx.Response(301, headers={"Location": "https://example.com/new"})
        )
        respx.get("https://example.com/new").mock(return_value=httpx.Response(200, text=ARTICLE_HTML))

        page = await PageFetcher().fetch_page_text("https://example.com/old")
        assert "retries" in page.text

    @pytest.mark.asyncio
    @respx.mock
    async def test_dns_failure_and_missing_page_are_distinct(self):
        respx.get("https://no-such-host.invalid/").mock(
            side_effect=httpx.ConnectError("[Errno -2] Name or service not known")
        )
        respx.get("https://example.com/missing").mock(return_value=httpx.Response(404))
        fetcher = PageFetcher()

        with pytest.raises(SiteNotFoundError) as dns_error:
            await fetcher.fetch_page_text("https://no-such-host.invalid/")
        with pytest.raises(PageNotFoundError) as missing_error:
            await fetcher.fetch_page_text("https://example.com/missing")

        assert dns_error.value.status_code == missing_error.value.status_code == 404
        assert dns_error.value.error_type is ErrorType.NETWORK
        assert missing_error.value.error_type is ErrorType.NOT_FOUND
        assert dns_error.value.message != missing_error.value.message

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_refused(self):
        respx.get("https://example.com/").mock(side_effect=httpx.ConnectError("[Errno 111] Connection refused"))

        with pytest.raises(SiteUnreachableError) as exc_info:
            await PageFetcher().fetch_page_text("https://example.com/")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self):
        respx.get("https://slow.example.com/").mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(FetchTimeoutError) as exc_info:
            await PageFetcher().fetch_page_text("https://slow.example.com/")
        assert exc_info.value.status_code == 408

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code, expected_error, expected_status", [
        (403, AccessDeniedError, 403),
        (404, PageNotFoundError, 404),
        (500, UpstreamSiteError, 502),
        (503, UpstreamSiteError, 502),
        (410, PageFetchError, 410),
    ])
    @respx.mock
    async def test_upstream_status_mapping(self, status_code, expected_error, expected_status):
        respx.get("https://example.com/page").mock(return_value=httpx.Response(status_code))

        with pytest.raises(expected_error) as exc_info:
            await PageFetcher().fetch_page_text("https://example.com/page")
        assert exc_info.value.status_code == expected_status

    @pytest.mark.asyncio
    @respx.mock
    async def test_too_little_text_rejected(self):
        respx.get("https://example.com/empty").mock(
            return_value=httpx.Response(200, text="<html><body><p>Hi</p></body></html>")
        )

        with pytest.raises(ContentRejectedError) as exc_info:
            await PageFetcher().fetch_page_text("https://example.com/empty")
        assert exc_info.value.status_code == 400
