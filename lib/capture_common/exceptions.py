"""
Custom exceptions for the content capture pipeline.

Only ScrapeChainExhausted is terminal for a capture. The *Degraded exceptions
are raised inside a stage and absorbed there, with a fallback value taking over.
"""


class CaptureError(Exception):
    """Base exception for capture pipeline errors."""


class ValidationError(CaptureError):
    """Submitted input is malformed and is rejected before enqueue."""


class InvalidUrlError(ValidationError):
    """URL is unparseable or not http/https."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(reason)


class DuplicateCaptureError(CaptureError):
    """Normalized URL has already been captured."""

    def __init__(self, source_url: str, existing_id: str | None = None):
        self.source_url = source_url
        self.existing_id = existing_id
        super().__init__(f"URL already captured: {source_url}")


class StrategyError(CaptureError):
    """A single extraction strategy failed. The chain moves on."""


class ScrapeChainExhausted(CaptureError):
    """Every strategy for a URL failed."""

    def __init__(self, url: str, attempts: list):
        self.url = url
        self.attempts = list(attempts)
        lines = [f"{a.strategy}: {a.reason}" for a in self.attempts]
        if not lines:
            lines = ["no strategy could handle this URL"]
        super().__init__("No content extracted.\n" + "\n".join(lines))


class MediaMaterializationDegraded(CaptureError):
    """Media could not be rehosted; the original URL is kept."""


class CategorizationDegraded(CaptureError):
    """Model categorization failed; the keyword fallback is used."""


class SearchIntentDegraded(CaptureError):
    """Intent extraction failed; the token fallback is used."""
