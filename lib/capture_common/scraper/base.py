"""
Base strategy class and shared helpers.

Every content strategy inherits from ContentStrategy: it declares which URLs it
can handle and either returns ExtractedContent or raises StrategyError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime

from capture_common.constants import TITLE_PREVIEW_LENGTH
from capture_common.models import ExtractedContent


@dataclass(frozen=True)
class StrategyAttempt:
    """One failed strategy in a resolution chain.

    Attributes:
        strategy: Strategy name.
        reason: Why it failed, as shown in the aggregated error.
    """

    strategy: str
    reason: str


class ContentStrategy(ABC):
    """Abstract base class for content extraction strategies."""

    name: str = "strategy"

    def can_handle(self, url: str) -> bool:
        """Whether this strategy applies to the URL. Defaults to any URL."""
        return True

    @abstractmethod
    def attempt(self, url: str) -> ExtractedContent:
        """Extract content from a URL.

        Args:
            url: Normalized URL.

        Returns:
            ExtractedContent for the URL.

        Raises:
            StrategyError: If this strategy cannot produce content.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def preview_title(text: str, length: int = TITLE_PREVIEW_LENGTH) -> str:
    """First `length` characters of text, with "..." if truncated."""
    return text[:length] + ("..." if len(text) > length else "")


def to_iso_datetime(value) -> str | None:
    """
    Normalize a provider timestamp to ISO-8601.

    Accepts epoch seconds, ISO strings and Twitter's
    "Wed Oct 10 20:19:24 +0000 2018" format. Unparseable values yield None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, UTC).isoformat()
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).isoformat()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%a %b %d %H:%M:%S %z %Y").isoformat()
    except ValueError:
        pass
    try:
        # VxTwitter: "Wed, 10 Oct 2018 20:19:24 GMT"
        return datetime.strptime(text, "%a, %d %b %Y %H:%M:%S %Z").replace(tzinfo=UTC).isoformat()
    except ValueError:
        return None
