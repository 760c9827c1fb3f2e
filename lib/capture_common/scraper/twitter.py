"""
Twitter/X content strategies.

Chain order: FxTwitter, VxTwitter, then one heavyweight Apify actor per
configured actor id. Each provider has its own response adapter; heavyweight
results are additionally checked against known placeholder payloads.
"""

import logging
import re
from collections.abc import Callable
from typing import Any

from capture_common.constants import APIFY_TIMEOUT, MIN_TWEET_TEXT_LENGTH
from capture_common.exceptions import StrategyError
from capture_common.models import ExtractedContent, MediaAsset, VideoAsset
from capture_common.scraper.apify import ApifyClient, ApifyError
from capture_common.scraper.base import ContentStrategy, preview_title, to_iso_datetime
from capture_common.scraper.fetcher import FetchError, HttpFetcher

logger = logging.getLogger(__name__)

TWEET_URL_PATTERN = re.compile(r"(?:twitter|x)\.com/(\w+)/status/(\d+)", re.IGNORECASE)

FXTWITTER_API = "https://api.fxtwitter.com"
VXTWITTER_API = "https://api.vxtwitter.com"

# Scraping services sometimes hand back marketing or demo payloads
PLACEHOLDER_PATTERNS = [
    re.compile(r"KaitoEasyAPI", re.IGNORECASE),
    re.compile(r"Our API pricing is based on", re.IGNORECASE),
    re.compile(r"From .+, a reminder:", re.IGNORECASE),
    re.compile(r"mock_tweet", re.IGNORECASE),
    re.compile(r"This is a sample", re.IGNORECASE),
    re.compile(r"test tweet", re.IGNORECASE),
]


def parse_tweet_url(url: str) -> tuple[str, str]:
    """
    Extract (username, tweet_id) from a tweet URL.

    Raises:
        StrategyError: If the URL is not a tweet permalink
    """
    match = TWEET_URL_PATTERN.search(url)
    if not match:
        raise StrategyError("Invalid Twitter/X URL format")
    return match.group(1), match.group(2)


def _first(*values):
    """First value that is not None or empty."""
    for value in values:
        if value not in (None, "", [], {}):
            return value
    return None


def _dig(data: dict[str, Any], path: str):
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def _tweet_content(
    text: str,
    author_name: str | None,
    screen_name: str | None,
    published_at: str | None,
    images: list[MediaAsset],
    videos: list[VideoAsset],
    platform_data: dict[str, Any],
) -> ExtractedContent:
    return ExtractedContent(
        title=preview_title(text),
        description=text,
        body_text=text,
        author_name=author_name or None,
        author_handle=f"@{screen_name.lstrip('@')}" if screen_name else None,
        published_at=published_at,
        images=images,
        videos=videos,
        platform_data={k: v for k, v in platform_data.items() if v is not None},
    )


def parse_fxtwitter(data: dict[str, Any]) -> ExtractedContent:
    """
    Adapt an FxTwitter API response.

    Raises:
        StrategyError: If the response doesn't carry a tweet
    """
    tweet = data.get("tweet") if isinstance(data, dict) else None
    if data.get("code") != 200 or not isinstance(tweet, dict):
        raise StrategyError(data.get("message") or "Tweet not found")

    author = tweet.get("author") or {}
    media = tweet.get("media") or {}
    images = [
        MediaAsset(
            original_url=photo["url"],
            width=photo.get("width"),
            height=photo.get("height"),
        )
        for photo in media.get("photos") or []
        if photo.get("url")
    ]
    videos = [
        VideoAsset(
            original_url=video["url"],
            thumbnail=video.get("thumbnail_url"),
            duration=video.get("duration"),
        )
        for video in media.get("videos") or []
        if video.get("url")
    ]

    return _tweet_content(
        text=tweet.get("text") or "",
        author_name=author.get("name"),
        screen_name=author.get("screen_name"),
        published_at=to_iso_datetime(tweet.get("created_at"))
        or to_iso_datetime(tweet.get("created_timestamp")),
        images=images,
        videos=videos,
        platform_data={
            "tweetId": tweet.get("id"),
            "retweetCount": tweet.get("retweets"),
            "likeCount": tweet.get("likes"),
            "replyCount": tweet.get("replies"),
            "viewCount": tweet.get("views"),
            "bookmarkCount": tweet.get("bookmarks"),
            "profileImageUrl": author.get("avatar_url"),
        },
    )


def parse_vxtwitter(data: dict[str, Any]) -> ExtractedContent:
    """
    Adapt a VxTwitter API response.

    Raises:
        StrategyError: If the response has no tweetID
    """
    if not isinstance(data, dict) or not data.get("tweetID"):
        raise StrategyError("Tweet not found")

    # mediaURLs mixes photos and videos
    images = [
        MediaAsset(original_url=url)
        for url in data.get("mediaURLs") or []
        if url and ".mp4" not in url and "/video/" not in url
    ]
    videos = []
    for media in data.get("media_extended") or []:
        if media.get("type") == "video" and media.get("url"):
            millis = media.get("duration_millis")
            videos.append(
                VideoAsset(
                    original_url=media["url"],
                    thumbnail=media.get("thumbnail_url"),
                    duration=millis / 1000 if millis else None,
                )
            )

    return _tweet_content(
        text=data.get("text") or "",
        author_name=data.get("user_name"),
        screen_name=data.get("user_screen_name"),
        published_at=to_iso_datetime(data.get("date")) or to_iso_datetime(data.get("date_epoch")),
        images=images,
        videos=videos,
        platform_data={
            "tweetId": data.get("tweetID"),
            "retweetCount": data.get("retweets"),
            "likeCount": data.get("likes"),
            "replyCount": data.get("replies"),
            "profileImageUrl": data.get("user_profile_image_url"),
        },
    )


def _entity_media(entities: list[dict[str, Any]]) -> tuple[list[MediaAsset], list[VideoAsset]]:
    """Photos and best-bitrate mp4 videos from Twitter media entities."""
    images: list[MediaAsset] = []
    videos: list[VideoAsset] = []
    for media in entities:
        media_type = media.get("type")
        poster = media.get("media_url_https") or media.get("media_url")
        if media_type == "photo" and poster:
            images.append(MediaAsset(original_url=poster))
        elif media_type in ("video", "animated_gif"):
            info = media.get("video_info") or {}
            mp4s = [
                v
                for v in info.get("variants") or []
                if v.get("content_type") == "video/mp4" and v.get("url")
            ]
            if not mp4s:
                continue
            best = max(mp4s, key=lambda v: v.get("bitrate") or 0)
            millis = info.get("duration_millis")
            videos.append(
                VideoAsset(
                    original_url=best["url"],
                    thumbnail=poster,
                    duration=millis / 1000 if millis else None,
                )
            )
    return images, videos


def _merge_flat_media(
    item: dict[str, Any], images: list[MediaAsset], videos: list[VideoAsset]
) -> None:
    """Merge the flat media/photos/videos arrays some actors return."""
    image_urls = {i.original_url for i in images}
    video_urls = {v.original_url for v in videos}

    for media in item.get("media") or []:
        if not isinstance(media, dict) or not media.get("url"):
            continue
        if media.get("type") == "photo" and media["url"] not in image_urls:
            images.append(MediaAsset(original_url=media["url"]))
            image_urls.add(media["url"])
        elif media.get("type") == "video" and media["url"] not in video_urls:
            videos.append(
                VideoAsset(
                    original_url=media["url"],
                    thumbnail=media.get("thumbnailUrl"),
                    duration=media.get("duration"),
                )
            )
            video_urls.add(media["url"])

    for photo in item.get("photos") or []:
        url = photo.get("url") if isinstance(photo, dict) else None
        if url and url not in image_urls:
            images.append(MediaAsset(original_url=url))
            image_urls.add(url)

    for video in item.get("videos") or []:
        url = video.get("url") if isinstance(video, dict) else None
        if url and url not in video_urls:
            videos.append(
                VideoAsset(
                    original_url=url,
                    thumbnail=video.get("thumbnailUrl"),
                    duration=video.get("duration"),
                )
            )
            video_urls.add(url)


def parse_apidojo_tweet(item: dict[str, Any]) -> ExtractedContent:
    """Adapt an apidojo tweet-scraper / twitter-scraper-lite dataset item (camelCase first)."""
    text = _first(item.get("fullText"), item.get("text"), item.get("full_text"), item.get("rawContent")) or ""
    entities = (
        _dig(item, "extendedEntities.media")
        or _dig(item, "extended_entities.media")
        or _dig(item, "entities.media")
        or []
    )
    images, videos = _entity_media(entities)
    _merge_flat_media(item, images, videos)

    return _tweet_content(
        text=text,
        author_name=_first(_dig(item, "author.name"), _dig(item, "author.displayName"), _dig(item, "user.name")),
        screen_name=_first(_dig(item, "author.userName"), _dig(item, "user.screen_name"), item.get("userName")),
        published_at=to_iso_datetime(_first(item.get("createdAt"), item.get("created_at"), item.get("date"))),
        images=images,
        videos=videos,
        platform_data={
            "tweetId": _first(item.get("id"), item.get("id_str"), item.get("tweetId")),
            "retweetCount": _first(item.get("retweetCount"), item.get("retweet_count")),
            "likeCount": _first(item.get("likeCount"), item.get("favorite_count")),
            "replyCount": _first(item.get("replyCount"), item.get("reply_count")),
            "viewCount": item.get("viewCount"),
            "bookmarkCount": item.get("bookmarkCount"),
            "profileImageUrl": _first(
                _dig(item, "author.profilePicture"), _dig(item, "author.profileImageUrl")
            ),
        },
    )


def parse_xtdata_tweet(item: dict[str, Any]) -> ExtractedContent:
    """Adapt an xtdata twitter-x-scraper dataset item (legacy snake_case first)."""
    text = (
        _first(item.get("full_text"), item.get("text"), item.get("rawContent"), item.get("content"))
        or ""
    )
    entities = _dig(item, "extended_entities.media") or _dig(item, "entities.media") or []
    images, videos = _entity_media(entities)
    _merge_flat_media(item, images, videos)

    return _tweet_content(
        text=text,
        author_name=_first(
            _dig(item, "user.name"), item.get("displayName"), item.get("authorName")
        ),
        screen_name=_first(
            _dig(item, "user.screen_name"),
            item.get("userName"),
            (item.get("authorHandle") or "").lstrip("@"),
        ),
        published_at=to_iso_datetime(_first(item.get("created_at"), item.get("date"), item.get("createdAt"))),
        images=images,
        videos=videos,
        platform_data={
            "tweetId": _first(item.get("id_str"), item.get("rest_id"), item.get("id"), item.get("tweetId")),
            "retweetCount": _first(item.get("retweet_count"), item.get("retweetCount")),
            "likeCount": _first(item.get("favorite_count"), item.get("likeCount")),
            "replyCount": _first(item.get("reply_count"), item.get("replyCount")),
            "profileImageUrl": _first(
                _dig(item, "user.profile_image_url_https"), item.get("profileImageUrl")
            ),
        },
    )


def validate_heavyweight_tweet(content: ExtractedContent) -> None:
    """
    Reject placeholder or empty heavyweight results.

    Raises:
        StrategyError: If the text matches a placeholder pattern or is too short
    """
    text = content.body_text or content.description or ""
    for pattern in PLACEHOLDER_PATTERNS:
        if pattern.search(text):
            raise StrategyError(f"Placeholder content detected ({pattern.pattern})")
    if len(text) < MIN_TWEET_TEXT_LENGTH:
        raise StrategyError("Tweet text too short")


class TweetStrategy(ContentStrategy):
    """Shared URL check for tweet permalinks."""

    def can_handle(self, url: str) -> bool:
        return bool(TWEET_URL_PATTERN.search(url))


class FxTwitterStrategy(TweetStrategy):
    """FxTwitter public API."""

    name = "fxtwitter"

    def __init__(self, fetcher: HttpFetcher):
        self.fetcher = fetcher

    def attempt(self, url: str) -> ExtractedContent:
        username, tweet_id = parse_tweet_url(url)
        try:
            data = self.fetcher.fetch_json(f"{FXTWITTER_API}/{username}/status/{tweet_id}")
        except FetchError as e:
            raise StrategyError(e.message) from e
        if not isinstance(data, dict):
            raise StrategyError("Unexpected response shape")
        return parse_fxtwitter(data)


class VxTwitterStrategy(TweetStrategy):
    """VxTwitter public API. Sometimes serves HTML with a 200, which is rejected."""

    name = "vxtwitter"

    def __init__(self, fetcher: HttpFetcher):
        self.fetcher = fetcher

    def attempt(self, url: str) -> ExtractedContent:
        username, tweet_id = parse_tweet_url(url)
        try:
            data = self.fetcher.fetch_json(f"{VXTWITTER_API}/{username}/status/{tweet_id}")
        except FetchError as e:
            raise StrategyError(e.message) from e
        return parse_vxtwitter(data)


# Actor id -> (input builder, response adapter)
TWEET_ACTORS: dict[str, tuple[Callable[[str], dict[str, Any]], Callable[[dict], ExtractedContent]]] = {
    "apidojo/tweet-scraper": (
        lambda tweet_id: {"tweetIDs": [tweet_id], "maxItems": 1, "addUserInfo": True},
        parse_apidojo_tweet,
    ),
    "apidojo/twitter-scraper-lite": (
        lambda tweet_id: {"tweetIDs": [tweet_id], "maxItems": 1},
        parse_apidojo_tweet,
    ),
    "xtdata/twitter-x-scraper": (
        lambda tweet_id: {"tweetIds": [tweet_id], "maxItems": 1},
        parse_xtdata_tweet,
    ),
}


class ApifyTweetStrategy(TweetStrategy):
    """
    One heavyweight Apify actor.

    Args:
        actor_id: Actor name; unknown actors get the apidojo input and adapter
        client: ApifyClient
        timeout: Actor run timeout in seconds
    """

    def __init__(self, actor_id: str, client: ApifyClient, timeout: float = APIFY_TIMEOUT):
        self.actor_id = actor_id
        self.name = f"apify:{actor_id}"
        self.client = client
        self.timeout = timeout
        self.build_input, self.adapter = TWEET_ACTORS.get(
            actor_id, TWEET_ACTORS["apidojo/tweet-scraper"]
        )

    def attempt(self, url: str) -> ExtractedContent:
        _, tweet_id = parse_tweet_url(url)
        try:
            items = self.client.run_actor(self.actor_id, self.build_input(tweet_id), timeout=self.timeout)
        except ApifyError as e:
            raise StrategyError(str(e)) from e
        if not items:
            raise StrategyError("No items returned")

        content = self.adapter(items[0])
        validate_heavyweight_tweet(content)
        return content
