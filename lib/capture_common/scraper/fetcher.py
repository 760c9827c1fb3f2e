"""
HTTP fetching for content strategies and media downloads.

Every request is timeout-bounded. Strategies use a single attempt so a slow
provider fails over to the next one quickly; media downloads can opt into
retries on 429/5xx.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from capture_common.constants import MAX_MEDIA_SIZE_BYTES, SCRAPE_TIMEOUT

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Error during a fetch."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        self.message = message
        super().__init__(f"Failed to fetch {url}: {message}")


@dataclass
class FetchResult:
    """Result of a fetch operation."""

    url: str
    status_code: int
    content: bytes
    content_type: str
    error: str | None = None

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class HttpFetcher:
    """
    Timeout-bounded HTTP client with optional retry on retryable statuses.

    Args:
        timeout: Default request timeout in seconds
        max_retries: Attempts per request (1 means no retry)
        headers: Extra headers merged over the defaults
        client: Pre-built httpx.Client (tests inject one with a MockTransport)
    """

    # Some platforms serve stripped pages to non-browser agents
    USER_AGENT = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        timeout: float = SCRAPE_TIMEOUT,
        max_retries: int = 1,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
    ):
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.headers = headers or {}
        self._client = client

    def _default_headers(self, accept: str) -> dict[str, str]:
        return {
            "User-Agent": self.USER_AGENT,
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.9",
            **self.headers,
        }

    def _send(self, method: str, url: str, timeout: float, **kwargs) -> httpx.Response:
        if self._client is not None:
            return self._client.request(method, url, timeout=timeout, **kwargs)
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            return client.request(method, url, **kwargs)

    def request(
        self,
        method: str,
        url: str,
        accept: str = "*/*",
        timeout: float | None = None,
        **kwargs,
    ) -> FetchResult:
        """
        Send a request with retries and return the outcome.

        Errors are reported on the result rather than raised.
        """
        timeout = timeout or self.timeout
        headers = {**self._default_headers(accept), **kwargs.pop("headers", {})}
        last_error = None
        last_status = None

        for attempt in range(self.max_retries):
            try:
                response = self._send(method, url, timeout, headers=headers, **kwargs)
                response.raise_for_status()
                return FetchResult(
                    url=str(response.url),
                    status_code=response.status_code,
                    content=response.content,
                    content_type=response.headers.get("content-type", ""),
                )
            except httpx.HTTPStatusError as e:
                last_status = e.response.status_code
                last_error = f"HTTP {last_status}: {e.response.reason_phrase}"
                if last_status not in self.RETRYABLE_STATUS_CODES:
                    break
            except httpx.TimeoutException as e:
                last_error = f"Timeout after {timeout:g}s: {e}"
            except httpx.RequestError as e:
                last_error = f"Request error: {e}"

            if attempt + 1 < self.max_retries:
                backoff = (2**attempt) * (2.0 if last_status == 429 else 1.0)
                logger.warning(
                    f"Retry {attempt + 1}/{self.max_retries} for {url} "
                    f"({last_error}, backoff={backoff}s)"
                )
                time.sleep(backoff)

        return FetchResult(
            url=url,
            status_code=last_status or 0,
            content=b"",
            content_type="",
            error=last_error,
        )

    def fetch(self, url: str, timeout: float | None = None) -> FetchResult:
        """
        Fetch a page as HTML.

        Raises:
            FetchError: On HTTP error, timeout or connection failure
        """
        result = self.request(
            "GET",
            url,
            accept="text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            timeout=timeout,
        )
        if result.error:
            raise FetchError(url, result.error, result.status_code)
        return result

    def fetch_json(self, url: str, timeout: float | None = None) -> Any:
        """
        Fetch and decode a JSON document.

        Raises:
            FetchError: On transport failure or a body that isn't JSON
        """
        result = self.request("GET", url, accept="application/json", timeout=timeout)
        if result.error:
            raise FetchError(url, result.error, result.status_code)
        return decode_json(url, result.text)

    def post_json(self, url: str, payload: Any, timeout: float | None = None, **kwargs) -> Any:
        """
        POST a JSON payload and decode the JSON reply.

        Raises:
            FetchError: On transport failure or a reply that isn't JSON
        """
        result = self.request(
            "POST", url, accept="application/json", timeout=timeout, json=payload, **kwargs
        )
        if result.error:
            raise FetchError(url, result.error, result.status_code)
        return decode_json(url, result.text)

    def fetch_bytes(
        self,
        url: str,
        timeout: float | None = None,
        max_bytes: int = MAX_MEDIA_SIZE_BYTES,
    ) -> FetchResult:
        """
        Download a binary resource such as an image.

        Raises:
            FetchError: On transport failure, an empty body or one over max_bytes
        """
        result = self.request("GET", url, accept="image/*,*/*;q=0.8", timeout=timeout)
        if result.error:
            raise FetchError(url, result.error, result.status_code)
        if not result.content:
            raise FetchError(url, "Empty response body", result.status_code)
        if len(result.content) > max_bytes:
            raise FetchError(
                url, f"Response too large ({len(result.content)} bytes)", result.status_code
            )
        return result


def decode_json(url: str, text: str) -> Any:
    """
    Parse a JSON body, rejecting HTML error pages served with a 200.

    Raises:
        FetchError: If the body is HTML or not valid JSON
    """
    head = text.lstrip()[:15].lower()
    if head.startswith("<!doctype") or head.startswith("<html"):
        raise FetchError(url, "Received HTML instead of JSON")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FetchError(url, f"Invalid JSON: {e}") from e
