"""
Web page text extraction.

Fetches a page over HTTP, strips layout chrome and returns the readable text
of its main content area. Every failure is raised as a ``PageFetchError``
subtype so callers can tell an unknown host from a missing page.
"""

import re
import socket
from typing import Optional

import httpx
from bs4 import BeautifulSoup

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
from models import ExtractedPage
from utils import LogRecord, LogEvent, info, warning

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_MIN_TEXT_LENGTH = 10

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

STRIPPED_TAGS = ["script", "style", "nav", "header", "footer", "iframe", "noscript"]
CONTENT_SELECTOR = "main, article, .content, .post, .article, #content"

_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)
_WHITESPACE = re.compile(r"\s+")


def normalize_url(url: Optional[str]) -> str:
    """Prefix bare hosts with https:// and reject anything that is not http(s)."""
    url = (url or "").strip()
    if not url:
        raise InvalidRequestError("URL is required")

    if not url.startswith("http"):
        url = "https://" + url

    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, ValueError, TypeError):
        raise InvalidURLError()
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidURLError()
    return str(parsed)


def is_dns_failure(exc: BaseException) -> bool:
    """Walk the exception chain looking for a name resolution failure."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        text = str(current).lower()
        if any(marker in text for marker in _DNS_FAILURE_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


def extract_text(html: str) -> str:
    """Readable text of the main content area, whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(STRIPPED_TAGS):
        tag.decompose()

    container = soup.select_one(CONTENT_SELECTOR) or soup.body or soup
    return _WHITESPACE.sub(" ", container.get_text(" ")).strip()


def error_for_status(status_code: int) -> PageFetchError:
    if status_code == 403:
        return AccessDeniedError()
    if status_code == 404:
        return PageNotFoundError()
    if status_code >= 500:
        return UpstreamSiteError()
    return PageFetchError(f"Failed to load the page (status {status_code})", status_code=status_code)


class PageFetcher:

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.min_text_length = min_text_length
        self._transport = transport

    async def _download(self, url: str) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                headers=BROWSER_HEADERS,
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
                transport=self._transport,
            ) as client:
                return await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError() from e
        except httpx.ConnectError as e:
            if is_dns_failure(e):
                raise SiteNotFoundError() from e
            raise SiteUnreachableError() from e
        except httpx.HTTPError as e:
            if is_dns_failure(e):
                raise SiteNotFoundError() from e
            raise PageFetchError(details=f"{type(e).__name__}: {e}") from e

    async def fetch_page_text(self, url: Optional[str], request_id: Optional[str] = None) -> ExtractedPage:
        target = normalize_url(url)
        info(LogRecord(
            event=LogEvent.PAGE_FETCH_STARTED.value,
            message=f"Fetching page: {target}",
            request_id=request_id,
        ))

        try:
            response = await self._download(target)
            if response.status_code >= 400:
                raise error_for_status(response.status_code)

            text = extract_text(response.text)
            if len(text) < self.min_text_length:
                raise ContentRejectedError()
        except (PageFetchError, ContentRejectedError) as e:
            warning(LogRecord(
                event=LogEvent.PAGE_FETCH_FAILED.value,
                message=f"Page fetch failed for {target}: {e.message}",
                request_id=request_id,
                data={"error_type": e.error_type.value, "status_code": e.status_code},
            ))
            raise

        info(LogRecord(
            event=LogEvent.PAGE_FETCH_COMPLETED.value,
            message=f"Extracted {len(text)} characters from {target}",
            request_id=request_id,
            data={"chars": len(text), "final_url": str(response.url)},
        ))
        return ExtractedPage(text=text, url=target)
