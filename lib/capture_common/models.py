"""
Data models for the content capture pipeline.

These models represent a capture as it flows through the pipeline:
submit -> queue -> scrape -> materialize -> categorize -> persist
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class SourceType(str, Enum):
    """Platform a captured URL belongs to."""

    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    PINTEREST = "pinterest"
    YOUTUBE = "youtube"
    WEB = "web"


class CaptureStatus(str, Enum):
    """Lifecycle status for captures."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class ContentType(str, Enum):
    """Shape of the captured content."""

    POST = "post"
    ARTICLE = "article"
    THREAD = "thread"
    IMAGE = "image"
    VIDEO = "video"


class SearchStrategy(str, Enum):
    """How wide a search intent should cast."""

    BROAD = "broad"
    FOCUSED = "focused"
    EXACT = "exact"


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class MediaAsset:
    """
    An image referenced by a capture.

    Attributes:
        original_url: URL the image was found at
        storage_path: Blob store key once rehosted
        public_url: Stable URL of the rehosted copy
        width: Pixel width, if known
        height: Pixel height, if known
        alt: Alt text from the page
    """

    original_url: str
    storage_path: str | None = None
    public_url: str | None = None
    width: int | None = None
    height: int | None = None
    alt: str | None = None

    @property
    def materialized(self) -> bool:
        return bool(self.public_url)

    @property
    def display_url(self) -> str:
        return self.public_url or self.original_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return _drop_none(
            {
                "originalUrl": self.original_url,
                "storagePath": self.storage_path,
                "publicUrl": self.public_url,
                "width": self.width,
                "height": self.height,
                "alt": self.alt,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MediaAsset":
        return cls(
            original_url=data.get("originalUrl") or data.get("url", ""),
            storage_path=data.get("storagePath"),
            public_url=data.get("publicUrl"),
            width=int(data["width"]) if data.get("width") is not None else None,
            height=int(data["height"]) if data.get("height") is not None else None,
            alt=data.get("alt"),
        )


@dataclass
class VideoAsset:
    """
    A video referenced by a capture. Only metadata is kept; bytes are never
    downloaded.
    """

    original_url: str
    thumbnail: str | None = None
    duration: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "originalUrl": self.original_url,
                "thumbnail": self.thumbnail,
                "duration": self.duration,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VideoAsset":
        duration = data.get("duration")
        return cls(
            original_url=data.get("originalUrl") or data.get("url", ""),
            thumbnail=data.get("thumbnail"),
            duration=float(duration) if duration is not None else None,
        )


@dataclass
class ExtractedContent:
    """Result of a successful scrape, independent of which strategy produced it."""

    title: str | None = None
    description: str | None = None
    body_text: str | None = None
    author_name: str | None = None
    author_handle: str | None = None
    published_at: str | None = None
    images: list[MediaAsset] = field(default_factory=list)
    videos: list[VideoAsset] = field(default_factory=list)
    screenshot: str | None = None
    platform_data: dict[str, Any] = field(default_factory=dict)


@dataclass
class CategorizationResult:
    """
    Model-or-fallback categorization of a capture.

    Attributes:
        summary: Short summary, at most 500 characters
        topics: 1-5 taxonomy topics
        discipline: Single discipline
        use_cases: 1-3 use cases
        content_type: Shape of the content
    """

    summary: str
    topics: list[str]
    discipline: str
    use_cases: list[str]
    content_type: ContentType = ContentType.POST


@dataclass
class ChannelContext:
    """Chat channel a capture was submitted from."""

    message_id: str
    channel_id: str
    user_id: str
    message_text: str = ""
    user_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "messageId": self.message_id,
                "channelId": self.channel_id,
                "userId": self.user_id,
                "userName": self.user_name,
                "messageText": self.message_text,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChannelContext":
        return cls(
            message_id=str(data.get("messageId", "")),
            channel_id=str(data.get("channelId", "")),
            user_id=str(data.get("userId", "")),
            message_text=data.get("messageText", ""),
            user_name=data.get("userName"),
        )


@dataclass
class CaptureMessage:
    """Queue payload handed from submission to the processing worker."""

    capture_id: str
    url: str
    source_type: SourceType
    notes: str | None = None
    channel_context: ChannelContext | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format (camelCase keys)."""
        data: dict[str, Any] = {
            "captureId": self.capture_id,
            "url": self.url,
            "sourceType": self.source_type.value,
        }
        if self.notes:
            data["notes"] = self.notes
        if self.channel_context:
            data["channelContext"] = self.channel_context.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaptureMessage":
        channel = data.get("channelContext")
        return cls(
            capture_id=data["captureId"],
            url=data["url"],
            source_type=SourceType(data.get("sourceType", "web")),
            notes=data.get("notes"),
            channel_context=ChannelContext.from_dict(channel) if channel else None,
        )


@dataclass
class CaptureRecord:
    """
    Persisted capture, keyed by id and unique by normalized source URL.

    Attributes:
        id: Unique identifier (UUID)
        source_url: Normalized URL
        source_type: Platform classification
        status: Lifecycle status
        error_message: Aggregated failure reason when status=failed
        platform_data: Free-form platform metadata plus notes and screenshot
        captured_at: When the URL was submitted
        processed_at: When processing last completed
    """

    id: str
    source_url: str
    source_type: SourceType
    status: CaptureStatus = CaptureStatus.PENDING
    title: str | None = None
    description: str | None = None
    body_text: str | None = None
    author_name: str | None = None
    author_handle: str | None = None
    published_at: str | None = None
    images: list[MediaAsset] = field(default_factory=list)
    videos: list[VideoAsset] = field(default_factory=list)
    summary: str | None = None
    topics: list[str] = field(default_factory=list)
    disciplines: list[str] = field(default_factory=list)
    use_cases: list[str] = field(default_factory=list)
    content_type: ContentType | None = None
    platform_data: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for DynamoDB storage."""
        data = {
            "id": self.id,
            "source_url": self.source_url,
            "source_type": self.source_type.value,
            "status": self.status.value,
            "images": [image.to_dict() for image in self.images],
            "videos": [video.to_dict() for video in self.videos],
            "topics": list(self.topics),
            "disciplines": list(self.disciplines),
            "use_cases": list(self.use_cases),
            "platform_data": dict(self.platform_data),
            "captured_at": self.captured_at.isoformat(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        optional = {
            "title": self.title,
            "description": self.description,
            "body_text": self.body_text,
            "author_name": self.author_name,
            "author_handle": self.author_handle,
            "published_at": self.published_at,
            "summary": self.summary,
            "content_type": self.content_type.value if self.content_type else None,
            "error_message": self.error_message,
            "processed_at": _isoformat(self.processed_at),
        }
        data.update(_drop_none(optional))
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaptureRecord":
        """Create CaptureRecord from DynamoDB record."""
        content_type = data.get("content_type")
        now = datetime.now(UTC)

        return cls(
            id=data["id"],
            source_url=data["source_url"],
            source_type=SourceType(data.get("source_type", "web")),
            status=CaptureStatus(data.get("status", "pending")),
            title=data.get("title"),
            description=data.get("description"),
            body_text=data.get("body_text"),
            author_name=data.get("author_name"),
            author_handle=data.get("author_handle"),
            published_at=data.get("published_at"),
            images=[MediaAsset.from_dict(i) for i in data.get("images") or []],
            videos=[VideoAsset.from_dict(v) for v in data.get("videos") or []],
            summary=data.get("summary"),
            topics=list(data.get("topics") or []),
            disciplines=list(data.get("disciplines") or []),
            use_cases=list(data.get("use_cases") or []),
            content_type=ContentType(content_type) if content_type else None,
            platform_data=dict(data.get("platform_data") or {}),
            error_message=data.get("error_message"),
            captured_at=_parse_datetime(data.get("captured_at")) or now,
            processed_at=_parse_datetime(data.get("processed_at")),
            created_at=_parse_datetime(data.get("created_at")) or now,
            updated_at=_parse_datetime(data.get("updated_at")) or now,
        )


@dataclass
class SearchIntent:
    """Structured reading of a free-text query. Never persisted."""

    keywords: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    use_cases: list[str] = field(default_factory=list)
    source_types: list[SourceType] = field(default_factory=list)
    content_types: list[ContentType] = field(default_factory=list)
    strategy: SearchStrategy = SearchStrategy.BROAD

    def to_dict(self) -> dict[str, Any]:
        return {
            "keywords": list(self.keywords),
            "topics": list(self.topics),
            "useCases": list(self.use_cases),
            "sourceTypes": [s.value for s in self.source_types],
            "contentTypes": [c.value for c in self.content_types],
            "searchStrategy": self.strategy.value,
        }
