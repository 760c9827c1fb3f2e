"""
Content extraction for captured URLs.

Architecture:
- Fetcher: timeout-bounded HTTP client shared by all strategies
- Strategies: one ContentStrategy per provider (FxTwitter, VxTwitter, Apify
  actors, Instagram, YouTube, generic HTML)
- Registry: ordered fallback chain per source type, generic HTML last
- Screenshots: optional page capture for generic pages
"""

from capture_common.scraper.base import ContentStrategy, StrategyAttempt
from capture_common.scraper.registry import StrategyRegistry, build_default_registry

__all__ = [
    "ContentStrategy",
    "StrategyAttempt",
    "StrategyRegistry",
    "build_default_registry",
]
