"""
URL normalization and source classification.

Normalization makes the dedup check stable: two URLs that differ only in
tracking parameters, host case, or a trailing slash map to the same string.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from capture_common.constants import TRACKING_PARAM_PREFIX, TRACKING_PARAMS
from capture_common.exceptions import InvalidUrlError
from capture_common.models import SourceType

# Hostname fragments per platform. Resolution picks the longest match.
SOURCE_HOST_PATTERNS = (
    ("twitter.com", SourceType.TWITTER),
    ("x.com", SourceType.TWITTER),
    ("instagram.com", SourceType.INSTAGRAM),
    ("youtube.com", SourceType.YOUTUBE),
    ("youtu.be", SourceType.YOUTUBE),
    ("linkedin.com", SourceType.LINKEDIN),
    ("pinterest.com", SourceType.PINTEREST),
    ("pin.it", SourceType.PINTEREST),
)

ALLOWED_SCHEMES = ("http", "https")


def is_tracking_param(name: str) -> bool:
    """Check whether a query parameter name is a known tracking parameter."""
    lowered = name.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith(TRACKING_PARAM_PREFIX)


def normalize_url(url: str) -> str:
    """
    Normalize a submitted URL into its canonical form.

    Strips tracking parameters, lowercases the host, and removes a trailing
    slash unless the path is root.

    Args:
        url: URL as submitted

    Returns:
        Canonical URL string

    Raises:
        InvalidUrlError: If the URL is unparseable or not http/https
    """
    if not url or not isinstance(url, str):
        raise InvalidUrlError(str(url), "Invalid URL format")

    try:
        parsed = urlsplit(url.strip())
        hostname = parsed.hostname
        port = parsed.port
    except ValueError as e:
        raise InvalidUrlError(url, "Invalid URL format") from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlError(url, "Only HTTP and HTTPS URLs are supported")
    if not hostname:
        raise InvalidUrlError(url, "Invalid URL format")

    netloc = hostname.lower()
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parsed.username:
        userinfo = parsed.username
        if parsed.password:
            userinfo = f"{userinfo}:{parsed.password}"
        netloc = f"{userinfo}@{netloc}"

    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"

    params = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not is_tracking_param(key)
    ]
    query = urlencode(params)

    return urlunsplit((parsed.scheme.lower(), netloc, path, query, parsed.fragment))


def classify_source(url: str) -> SourceType:
    """
    Classify a URL by platform.

    Uses the longest hostname fragment that matches at a label boundary, so
    "mobile.twitter.com" is twitter while "dropbox.com" stays web.

    Args:
        url: URL to classify (normalized or not)

    Returns:
        SourceType, defaulting to WEB
    """
    try:
        hostname = (urlsplit(url.strip()).hostname or "").lower()
    except ValueError:
        return SourceType.WEB

    best: tuple[int, SourceType] | None = None
    for pattern, source_type in SOURCE_HOST_PATTERNS:
        if hostname == pattern or hostname.endswith("." + pattern):
            if best is None or len(pattern) > best[0]:
                best = (len(pattern), source_type)

    return best[1] if best else SourceType.WEB


def validate_url(url: str) -> tuple[str, SourceType]:
    """
    Normalize and classify a submitted URL in one step.

    Returns:
        Tuple of (normalized_url, source_type)

    Raises:
        InvalidUrlError: If the URL is rejected
    """
    normalized = normalize_url(url)
    return normalized, classify_source(normalized)
