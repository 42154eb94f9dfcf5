"""Web page fetching and text extraction."""

from .fetcher import PageFetcher, normalize_url, extract_text, is_dns_failure, error_for_status

__all__ = ["PageFetcher", "normalize_url", "extract_text", "is_dns_failure", "error_for_status"]
