"""
Client for Apify actors over the REST API.

Actors run synchronously and return their dataset items in the response:
POST /v2/acts/{actor}/run-sync-get-dataset-items
"""

import logging
from typing import Any

from capture_common.constants import APIFY_TIMEOUT
from capture_common.scraper.fetcher import FetchError, HttpFetcher

logger = logging.getLogger(__name__)

APIFY_API_BASE = "https://api.apify.com/v2"


class ApifyError(Exception):
    """An actor run failed or returned something unusable."""


class ApifyClient:
    """
    Runs Apify actors and returns their dataset items.

    Args:
        token: Apify API token
        fetcher: HttpFetcher used for the calls (tests inject a mocked one)
    """

    def __init__(self, token: str, fetcher: HttpFetcher | None = None):
        if not token:
            raise ValueError("Apify token is required")
        self.token = token
        self.fetcher = fetcher or HttpFetcher(timeout=APIFY_TIMEOUT)

    def run_actor(
        self,
        actor_id: str,
        run_input: dict[str, Any],
        timeout: float = APIFY_TIMEOUT,
        memory_mb: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Run an actor to completion and return its dataset items.

        Args:
            actor_id: Actor name such as "apidojo/tweet-scraper"
            run_input: Actor input
            timeout: Run timeout in seconds, also used for the HTTP call
            memory_mb: Optional memory allocation for the run

        Returns:
            List of dataset items (possibly empty)

        Raises:
            ApifyError: If the run fails or the reply is not a list
        """
        url = f"{APIFY_API_BASE}/acts/{actor_id.replace('/', '~')}/run-sync-get-dataset-items"
        params: dict[str, Any] = {"timeout": int(timeout)}
        if memory_mb:
            params["memory"] = memory_mb

        logger.info(f"Running Apify actor {actor_id} (timeout={int(timeout)}s)")
        try:
            items = self.fetcher.post_json(
                url,
                run_input,
                # Leave headroom for the HTTP round trip around the run itself
                timeout=timeout + 10,
                params=params,
                headers={"Authorization": f"Bearer {self.token}"},
            )
        except FetchError as e:
            raise ApifyError(f"{actor_id} failed: {e.message}") from e

        if not isinstance(items, list):
            raise ApifyError(f"{actor_id} returned {type(items).__name__}, expected a list")

        logger.info(f"Apify actor {actor_id} returned {len(items)} items")
        return [item for item in items if isinstance(item, dict)]
