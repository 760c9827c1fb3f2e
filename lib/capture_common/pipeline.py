"""
Capture state machine.

pending -> processing -> complete | failed

One capture per call: claim, resolve the scrape chain, materialize media,
categorize, then write the whole record once. Only scrape-chain exhaustion
fails a capture; media and categorization degrade in place. Record store
errors propagate so the transport redelivers the message.
"""

import logging
import time
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from capture_common.bedrock import BedrockClient
from capture_common.categorizer import Categorizer
from capture_common.config import PipelineSettings
from capture_common.constants import MAX_ERROR_MESSAGE_LENGTH
from capture_common.exceptions import ScrapeChainExhausted
from capture_common.logging_utils import log_summary
from capture_common.media import MaterializedMedia, MediaMaterializer, select_thumbnail
from capture_common.models import (
    CaptureMessage,
    CaptureRecord,
    CaptureStatus,
    CategorizationResult,
    ExtractedContent,
)
from capture_common.records import CaptureRepository
from capture_common.scraper.registry import StrategyRegistry, build_default_registry
from capture_common.storage import BlobStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineContext:
    """Collaborators for processing captures. Built once per Lambda container."""

    repository: CaptureRepository
    registry: StrategyRegistry
    materializer: MediaMaterializer
    categorizer: Categorizer


@dataclass(frozen=True)
class Completed:
    capture_id: str
    record: CaptureRecord


@dataclass(frozen=True)
class Failed:
    capture_id: str
    reason: str


CaptureOutcome = Completed | Failed


def build_pipeline_context(settings: PipelineSettings) -> PipelineContext:
    """
    Wire production collaborators from settings.

    Raises:
        ValueError: If the table or bucket is not configured
    """
    if not settings.captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")
    if not settings.media_bucket:
        raise ValueError("MEDIA_BUCKET environment variable required")

    blob_store = BlobStore(
        settings.media_bucket,
        public_base_url=settings.media_public_base_url,
        region=settings.region,
    )
    return PipelineContext(
        repository=CaptureRepository(settings.captures_table),
        registry=build_default_registry(settings),
        materializer=MediaMaterializer(blob_store),
        categorizer=Categorizer(
            BedrockClient(region=settings.region), settings.categorization_model_id
        ),
    )


def build_platform_data(
    content: ExtractedContent, media: MaterializedMedia, message: CaptureMessage
) -> dict[str, Any]:
    """Scraped platform data plus submission context."""
    platform_data = dict(content.platform_data)
    if message.notes:
        platform_data["user_notes"] = message.notes
    if media.screenshot:
        platform_data["screenshot"] = media.screenshot
    if message.channel_context:
        if message.channel_context.user_name:
            platform_data["submitted_by"] = message.channel_context.user_name
        platform_data["channel_context"] = message.channel_context.to_dict()
    thumbnail = select_thumbnail(media.images, media.videos)
    if thumbnail:
        platform_data["thumbnail"] = thumbnail
    return platform_data


def complete_record(
    base: CaptureRecord,
    content: ExtractedContent,
    media: MaterializedMedia,
    categorization: CategorizationResult,
    message: CaptureMessage,
) -> CaptureRecord:
    """Build the completed record; extracted and categorization fields are replaced wholesale."""
    return replace(
        base,
        status=CaptureStatus.COMPLETE,
        title=content.title,
        description=content.description,
        body_text=content.body_text,
        author_name=content.author_name,
        author_handle=content.author_handle,
        published_at=content.published_at,
        images=media.images,
        videos=media.videos,
        summary=categorization.summary,
        topics=list(categorization.topics),
        disciplines=[categorization.discipline],
        use_cases=list(categorization.use_cases),
        content_type=categorization.content_type,
        platform_data=build_platform_data(content, media, message),
        error_message=None,
        processed_at=datetime.now(UTC),
    )


def _claim(ctx: PipelineContext, message: CaptureMessage) -> CaptureRecord:
    """Mark the capture processing, creating it from the message if it's missing."""
    existing = ctx.repository.get(message.capture_id)
    if existing is None:
        logger.warning(f"Capture {message.capture_id} not found; recreating from message")
        existing = CaptureRecord(
            id=message.capture_id,
            source_url=message.url,
            source_type=message.source_type,
        )
        if message.notes:
            existing.platform_data["user_notes"] = message.notes

    record = replace(existing, status=CaptureStatus.PROCESSING, error_message=None)
    ctx.repository.put(record)
    return record


def process_capture(message: CaptureMessage, ctx: PipelineContext) -> CaptureOutcome:
    """
    Process one capture message end to end.

    Returns:
        Completed with the written record, or Failed with the aggregated scrape error

    Raises:
        ClientError: If the record store is unavailable
    """
    start = time.time()
    capture_id = message.capture_id
    logger.info(f"Processing capture {capture_id}: {message.url} ({message.source_type.value})")

    record = _claim(ctx, message)

    try:
        content = ctx.registry.resolve(message.url, message.source_type)
    except ScrapeChainExhausted as e:
        reason = str(e)
        ctx.repository.put(
            replace(
                record,
                status=CaptureStatus.FAILED,
                error_message=reason[:MAX_ERROR_MESSAGE_LENGTH],
            )
        )
        logger.error(
            log_summary(
                "process_capture",
                success=False,
                duration_ms=(time.time() - start) * 1000,
                error=reason,
                capture_id=capture_id,
                attempts=e.attempts,
            )
        )
        return Failed(capture_id=capture_id, reason=reason)

    media = ctx.materializer.materialize(capture_id, content.images, content.videos, content.screenshot)
    categorization, categorization_degraded = ctx.categorizer.categorize(
        content, message.source_type, message.url
    )

    completed = complete_record(record, content, media, categorization, message)
    ctx.repository.put(completed)

    logger.info(
        log_summary(
            "process_capture",
            duration_ms=(time.time() - start) * 1000,
            item_count=len(media.images),
            capture_id=capture_id,
            source_type=message.source_type.value,
            strategy=content.platform_data.get("scrapedWith", ""),
            media_degraded=media.degraded_count,
            categorization_degraded=categorization_degraded,
        )
    )
    return Completed(capture_id=capture_id, record=completed)
