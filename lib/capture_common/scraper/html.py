"""
HTML metadata and content extraction.

Reads Open Graph, Twitter Card and standard meta tags, samples body text from
the main content region after stripping page chrome, and collects candidate
images in priority order.
"""

import re
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from capture_common.constants import DEFAULT_MAX_IMAGES, MAX_BODY_TEXT_LENGTH
from capture_common.models import MediaAsset

# Meta images in priority order
META_IMAGE_KEYS = ("og:image", "og:image:secure_url", "twitter:image", "twitter:image:src")

# Inline <img> attributes that may carry the image URL, in priority order
IMG_SRC_ATTRS = ("src", "data-src", "data-lazy-src")
IMG_SRCSET_ATTRS = ("srcset", "data-srcset")

EXCLUDED_IMAGE_MARKERS = ("tracking", "pixel", "icon", "1x1")
EXCLUDED_IMAGE_EXTENSIONS = (".svg", ".gif")

_WHITESPACE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def read_meta(soup: BeautifulSoup) -> dict[str, str]:
    """
    Collect <meta> content keyed by lowercased property or name.

    The first occurrence of a key wins.
    """
    meta: dict[str, str] = {}
    for tag in soup.find_all("meta"):
        key = tag.get("property") or tag.get("name") or tag.get("itemprop")
        content = tag.get("content")
        if not key or content is None:
            continue
        key = key.strip().lower()
        content = content.strip()
        if content and key not in meta:
            meta[key] = content
    return meta


def extract_title(soup: BeautifulSoup, meta: dict[str, str]) -> str | None:
    """
    Extract page title.

    Priority: og:title > twitter:title > <title>
    """
    title = meta.get("og:title") or meta.get("twitter:title")
    if title:
        return title
    title_tag = soup.find("title")
    if title_tag:
        text = title_tag.get_text(strip=True)
        if text:
            return text
    return None


def extract_description(meta: dict[str, str]) -> str | None:
    return meta.get("og:description") or meta.get("twitter:description") or meta.get("description")


def extract_author(meta: dict[str, str]) -> tuple[str | None, str | None]:
    """
    Extract (author_name, author_handle).

    The handle comes from twitter:creator; the name falls back to the handle
    without its @.
    """
    creator = meta.get("twitter:creator")
    name = meta.get("author") or meta.get("article:author")
    if not name and creator:
        name = creator.lstrip("@")
    return name or None, creator or None


def extract_published_at(soup: BeautifulSoup, meta: dict[str, str]) -> str | None:
    published = meta.get("article:published_time")
    if published:
        return published
    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag and time_tag.get("datetime"):
        return time_tag["datetime"].strip() or None
    return None


def sanitize_html(soup: BeautifulSoup) -> BeautifulSoup:
    """
    Remove non-content elements in place.

    Removes scripts, styles, navigation, headers, footers, asides, forms, and
    common chrome classes such as sidebars, comments and cookie banners.
    """
    remove_tags = [
        "script",
        "style",
        "noscript",
        "iframe",
        "nav",
        "footer",
        "header",
        "aside",
        "form",
        "button",
        "svg",
    ]
    for element in soup.find_all(remove_tags):
        element.decompose()

    chrome_selectors = [
        '[role="navigation"]',
        '[role="banner"]',
        '[role="contentinfo"]',
        '[role="complementary"]',
        ".sidebar",
        ".comments",
        ".advertisement",
        ".ads",
        ".cookie-banner",
        ".cookie-notice",
        ".newsletter",
        ".social-share",
        ".related-posts",
    ]
    for selector in chrome_selectors:
        for element in soup.select(selector):
            element.decompose()

    return soup


def find_main_content(soup: BeautifulSoup):
    """
    Find the main content region.

    Priority: article > main > [role=main] > body
    """
    for candidate in (
        soup.find("article"),
        soup.find("main"),
        soup.find(attrs={"role": "main"}),
    ):
        if candidate is not None and candidate.get_text(strip=True):
            return candidate
    return soup.body or soup


def extract_body_text(soup: BeautifulSoup, max_length: int = MAX_BODY_TEXT_LENGTH) -> str | None:
    """Whitespace-collapsed text of the main content region, truncated."""
    text = _WHITESPACE.sub(" ", find_main_content(soup).get_text(" ")).strip()
    return text[:max_length] or None


def resolve_url(url: str, base_url: str) -> str:
    """Resolve a possibly relative URL against the page URL."""
    try:
        return urljoin(base_url, url.strip())
    except ValueError:
        return url


def pick_largest_srcset(srcset: str) -> str | None:
    """
    Pick the candidate with the largest width or density descriptor.

    Candidates without a descriptor count as 1x.
    """
    best_url = None
    best_size = -1.0
    for candidate in srcset.split(","):
        parts = candidate.strip().split()
        if not parts:
            continue
        size = 1.0
        if len(parts) > 1:
            descriptor = parts[1].lower()
            try:
                size = float(descriptor[:-1]) if descriptor[-1] in ("w", "x") else 1.0
            except ValueError:
                size = 1.0
        if size > best_size:
            best_url, best_size = parts[0], size
    return best_url


def is_valid_image_url(url: str) -> bool:
    """Filter out data URIs, tracking pixels, icons, SVGs and GIFs."""
    lowered = url.lower()
    if lowered.startswith("data:"):
        return False
    if any(marker in lowered for marker in EXCLUDED_IMAGE_MARKERS):
        return False
    try:
        path = urlsplit(lowered).path
    except ValueError:
        # e.g. an unbalanced "[" read as a broken IPv6 host
        return False
    return not path.endswith(EXCLUDED_IMAGE_EXTENSIONS)


def _int_attr(value) -> int | None:
    try:
        number = int(str(value).strip().removesuffix("px"))
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def collect_images(
    soup: BeautifulSoup,
    meta: dict[str, str],
    page_url: str,
    max_images: int = DEFAULT_MAX_IMAGES,
) -> list[MediaAsset]:
    """
    Collect page images: meta images first, then inline <img> tags.

    URLs are resolved against page_url, deduplicated, filtered and capped.
    """
    images: list[MediaAsset] = []
    seen: set[str] = set()

    def add(raw_url: str | None, **attrs) -> None:
        if not raw_url or len(images) >= max_images:
            return
        resolved = resolve_url(raw_url, page_url)
        if resolved in seen or not is_valid_image_url(resolved):
            return
        seen.add(resolved)
        images.append(MediaAsset(original_url=resolved, **attrs))

    for key in META_IMAGE_KEYS:
        add(meta.get(key))

    for img in soup.find_all("img"):
        if len(images) >= max_images:
            break
        src = next((img.get(attr) for attr in IMG_SRC_ATTRS if img.get(attr)), None)
        if not src or src.startswith("data:"):
            srcset = next((img.get(attr) for attr in IMG_SRCSET_ATTRS if img.get(attr)), None)
            src = pick_largest_srcset(srcset) if srcset else src
        add(
            src,
            alt=(img.get("alt") or "").strip() or None,
            width=_int_attr(img.get("width")),
            height=_int_attr(img.get("height")),
        )

    return images
