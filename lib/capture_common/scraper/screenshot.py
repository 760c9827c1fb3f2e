"""
Page screenshots through the apify/screenshot-url actor.

Two attempts escalate from full fidelity (network idle, render delay, more
memory) down to a fast capture on the load event. A screenshot is a nice to
have: failures are logged and yield None.
"""

import logging
from dataclasses import dataclass
from typing import Any

from capture_common.constants import SCREENSHOT_TIMEOUT
from capture_common.scraper.apify import ApifyClient, ApifyError

logger = logging.getLogger(__name__)

SCREENSHOT_ACTOR = "apify/screenshot-url"
VIEWPORT_WIDTH = 1280
VIEWPORT_HEIGHT = 800


@dataclass(frozen=True)
class ScreenshotAttempt:
    label: str
    wait_until: str
    delay_ms: int
    memory_mb: int


SCREENSHOT_ATTEMPTS = (
    ScreenshotAttempt("full", wait_until="networkidle2", delay_ms=2000, memory_mb=2048),
    ScreenshotAttempt("fast", wait_until="load", delay_ms=0, memory_mb=1024),
)


def screenshot_from_item(item: dict[str, Any]) -> str | None:
    """
    Pull the screenshot out of a dataset item.

    Returns:
        A hosted http(s) URL, a data: URI, or None
    """
    hosted = item.get("screenshotUrl") or item.get("url_screenshot")
    if isinstance(hosted, str) and hosted.startswith(("http://", "https://")):
        return hosted

    inline = item.get("screenshot") or item.get("image")
    if isinstance(inline, str) and inline:
        if inline.startswith(("data:", "http://", "https://")):
            return inline
        return f"data:image/png;base64,{inline}"
    return None


class ScreenshotService:
    """Takes a viewport screenshot of a URL."""

    def __init__(self, client: ApifyClient, timeout: float = SCREENSHOT_TIMEOUT):
        self.client = client
        self.timeout = timeout

    def capture(self, url: str) -> str | None:
        """
        Screenshot a URL, trying each attempt profile in order.

        Returns:
            Hosted URL or data: URI of the screenshot, or None if every attempt failed
        """
        for attempt in SCREENSHOT_ATTEMPTS:
            run_input = {
                "urls": [{"url": url}],
                "viewportWidth": VIEWPORT_WIDTH,
                "viewportHeight": VIEWPORT_HEIGHT,
                "scrollToBottom": False,
                "delay": attempt.delay_ms,
                "waitUntil": attempt.wait_until,
            }
            try:
                items = self.client.run_actor(
                    SCREENSHOT_ACTOR, run_input, timeout=self.timeout, memory_mb=attempt.memory_mb
                )
            except ApifyError as e:
                logger.warning(f"Screenshot ({attempt.label}) failed for {url}: {e}")
                continue

            for item in items:
                screenshot = screenshot_from_item(item)
                if screenshot:
                    logger.info(f"Screenshot ({attempt.label}) captured for {url}")
                    return screenshot
            logger.warning(f"Screenshot ({attempt.label}) returned no image for {url}")

        return None
