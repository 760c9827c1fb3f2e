"""
Strategy resolution per source type.

Each source type maps to an ordered list of strategies. Resolution walks the
list, returns the first success and records every failure; the generic HTML
strategy closes every chain.
"""

import logging

from capture_common.config import PipelineSettings
from capture_common.exceptions import ScrapeChainExhausted, StrategyError
from capture_common.models import ExtractedContent, SourceType
from capture_common.scraper.apify import ApifyClient
from capture_common.scraper.base import ContentStrategy, StrategyAttempt
from capture_common.scraper.fetcher import HttpFetcher
from capture_common.scraper.generic import GenericHtmlStrategy
from capture_common.scraper.instagram import InstagramApifyStrategy
from capture_common.scraper.screenshot import ScreenshotService
from capture_common.scraper.twitter import ApifyTweetStrategy, FxTwitterStrategy, VxTwitterStrategy
from capture_common.scraper.youtube import YouTubeStrategy

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """
    Ordered strategy chains keyed by source type.

    Args:
        chains: SourceType -> strategies, tried in order
        fallback: Strategy tried last for every URL unless it already ran
    """

    def __init__(
        self,
        chains: dict[SourceType, list[ContentStrategy]],
        fallback: ContentStrategy,
    ):
        self.chains = {source: list(strategies) for source, strategies in chains.items()}
        self.fallback = fallback

    def chain_for(self, source_type: SourceType) -> list[ContentStrategy]:
        """Strategies tried for a source type, fallback included."""
        chain = list(self.chains.get(source_type, []))
        if self.fallback not in chain:
            chain.append(self.fallback)
        return chain

    def resolve(self, url: str, source_type: SourceType) -> ExtractedContent:
        """
        Extract content with the first strategy that succeeds.

        Strategies whose can_handle() rejects the URL are skipped. Failures,
        including unexpected exceptions, are recorded and the next strategy is
        tried.

        Raises:
            ScrapeChainExhausted: If every attempted strategy failed
        """
        attempts: list[StrategyAttempt] = []

        for strategy in self.chain_for(source_type):
            if strategy is not self.fallback and not strategy.can_handle(url):
                logger.debug(f"Skipping {strategy.name}: cannot handle {url}")
                continue

            logger.info(f"Trying {strategy.name} for {url}")
            try:
                content = strategy.attempt(url)
            except StrategyError as e:
                reason = str(e) or type(e).__name__
            except Exception as e:
                logger.exception(f"Unexpected error in {strategy.name}")
                reason = f"Unexpected error: {e}"
            else:
                logger.info(
                    f"{strategy.name} succeeded for {url} after {len(attempts)} failed attempts"
                )
                content.platform_data.setdefault("scrapedWith", strategy.name)
                return content

            logger.warning(f"{strategy.name} failed for {url}: {reason}")
            attempts.append(StrategyAttempt(strategy=strategy.name, reason=reason))

        raise ScrapeChainExhausted(url, attempts)


def build_default_registry(
    settings: PipelineSettings,
    fetcher: HttpFetcher | None = None,
    apify: ApifyClient | None = None,
) -> StrategyRegistry:
    """
    Wire the production strategy chains from settings.

    Heavyweight strategies (Apify tweet actors, Instagram, screenshots) are
    registered only when an Apify token is configured.
    """
    fetcher = fetcher or HttpFetcher(timeout=settings.scrape_timeout)
    if apify is None and settings.apify_token:
        apify = ApifyClient(settings.apify_token)

    screenshots = ScreenshotService(apify) if apify and settings.screenshots_enabled else None
    generic = GenericHtmlStrategy(fetcher, max_images=settings.max_images, screenshots=screenshots)

    twitter: list[ContentStrategy] = [FxTwitterStrategy(fetcher), VxTwitterStrategy(fetcher)]
    instagram: list[ContentStrategy] = []
    if apify:
        twitter.extend(ApifyTweetStrategy(actor, apify) for actor in settings.twitter_apify_actors)
        instagram.append(InstagramApifyStrategy(apify))
    else:
        logger.info("No Apify token configured; heavyweight strategies and screenshots disabled")

    return StrategyRegistry(
        chains={
            SourceType.TWITTER: twitter,
            SourceType.INSTAGRAM: instagram,
            SourceType.YOUTUBE: [YouTubeStrategy(fetcher)],
            SourceType.LINKEDIN: [generic],
            SourceType.PINTEREST: [generic],
            SourceType.WEB: [generic],
        },
        fallback=generic,
    )
