"""
Constants used throughout the content capture pipeline.

Centralizes magic numbers and configuration values to improve
maintainability and make tuning easier.
"""

# =============================================================================
# URL Normalization
# =============================================================================

# Query parameters stripped before dedup and classification
TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_content",
        "utm_term",
        "igsh",  # Instagram
        "igshid",
        "ig_rid",
        "s",  # Twitter/X share params
        "t",
        "ref",
        "ref_src",
        "ref_url",
        "fbclid",  # Facebook/Google ads
        "gclid",
        "gclsrc",
        "mc_cid",  # Mailchimp
        "mc_eid",
        "_ga",  # Google Analytics
        "_gl",
    }
)

# Any parameter with this prefix is treated as tracking
TRACKING_PARAM_PREFIX = "utm_"


# =============================================================================
# Timeouts (in seconds)
# =============================================================================

# Plain HTML / JSON fetches
SCRAPE_TIMEOUT = 15.0

# Heavyweight scraping-service runs (per actor)
APIFY_TIMEOUT = 120.0

# Instagram actor runs need longer with residential proxies
INSTAGRAM_TIMEOUT = 120.0

# Screenshot actor runs
SCREENSHOT_TIMEOUT = 60.0

# Media download for rehosting
MEDIA_DOWNLOAD_TIMEOUT = 20.0

# Bedrock read timeout
BEDROCK_READ_TIMEOUT = 60


# =============================================================================
# Extraction Limits
# =============================================================================

# Default cap on images collected by the generic HTML strategy
DEFAULT_MAX_IMAGES = 10

# Body text sampled from a generic page
MAX_BODY_TEXT_LENGTH = 5000

# Social post titles are the first N characters of the text
TITLE_PREVIEW_LENGTH = 100

# Instagram description is the caption truncated to this length
INSTAGRAM_DESCRIPTION_LENGTH = 500

# Heavyweight tweet results shorter than this are rejected
MIN_TWEET_TEXT_LENGTH = 5

# Maximum image size accepted for rehosting (15 MB)
MAX_MEDIA_SIZE_BYTES = 15 * 1024 * 1024

# Concurrent media downloads within one capture
MEDIA_DOWNLOAD_WORKERS = 4

# Thumbnails smaller than this (either side) are deprioritized
MIN_THUMBNAIL_DIMENSION = 200


# =============================================================================
# Categorization
# =============================================================================

MAX_SUMMARY_LENGTH = 500
MAX_TOPICS = 5
MAX_USE_CASES = 3

# Body text sent to the model
MAX_PROMPT_BODY_LENGTH = 3000

DEFAULT_SUMMARY = "Content saved for later reference."
DEFAULT_TOPIC = "General"
DEFAULT_DISCIPLINE = "General"
DEFAULT_USE_CASE = "Reference"

# Web pages with longer bodies are treated as articles by the fallback
ARTICLE_BODY_THRESHOLD = 1000


# =============================================================================
# Search
# =============================================================================

MAX_SEARCH_KEYWORDS = 8
DEFAULT_SEARCH_LIMIT = 24
MAX_SEARCH_LIMIT = 100

# Base score is this minus the position in store ordering
SEARCH_BASE_SCORE = 100
TITLE_MATCH_BONUS = 25
DESCRIPTION_MATCH_BONUS = 15
SUMMARY_MATCH_BONUS = 10
TOPIC_MATCH_BONUS = 5

# Fallback keyword extraction ignores tokens this short
MIN_FALLBACK_KEYWORD_LENGTH = 3


# =============================================================================
# Storage
# =============================================================================

CAPTURE_PREFIX = "captures"

# Truncation for error messages written to the record
MAX_ERROR_MESSAGE_LENGTH = 2000

SOURCE_URL_INDEX = "SourceUrlIndex"


# =============================================================================
# Models
# =============================================================================

DEFAULT_CATEGORIZATION_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"
DEFAULT_SEARCH_MODEL = "us.anthropic.claude-haiku-4-5-20251001-v1:0"
