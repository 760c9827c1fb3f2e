"""
Capture submission and requeue.

submit_capture: validate -> dedup -> insert pending record -> publish.
requeue_pending: reset failed captures and republish everything pending.
"""

import logging
import uuid
from typing import Any

from capture_common.exceptions import DuplicateCaptureError, InvalidUrlError, ValidationError
from capture_common.models import CaptureMessage, CaptureRecord, CaptureStatus, ChannelContext
from capture_common.queue import CaptureQueue
from capture_common.records import CaptureRepository
from capture_common.urls import validate_url

logger = logging.getLogger(__name__)


def parse_channel_context(data: Any) -> ChannelContext | None:
    """
    Read an inbound channelContext object.

    Raises:
        ValidationError: If it is present but not an object with the required ids
    """
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError("channelContext must be an object")
    missing = [key for key in ("messageId", "channelId", "userId") if not data.get(key)]
    if missing:
        raise ValidationError(f"channelContext missing: {', '.join(missing)}")
    return ChannelContext.from_dict(data)


def message_for_record(record: CaptureRecord) -> CaptureMessage:
    """Rebuild the queue message for a stored capture."""
    channel = record.platform_data.get("channel_context")
    return CaptureMessage(
        capture_id=record.id,
        url=record.source_url,
        source_type=record.source_type,
        notes=record.platform_data.get("user_notes"),
        channel_context=ChannelContext.from_dict(channel) if isinstance(channel, dict) else None,
    )


def submit_capture(
    url: str,
    repository: CaptureRepository,
    queue: CaptureQueue,
    notes: str | None = None,
    channel_context: ChannelContext | None = None,
) -> CaptureRecord:
    """
    Accept a URL for capture.

    Returns:
        The inserted pending record

    Raises:
        ValidationError: If the URL is rejected
        DuplicateCaptureError: If the normalized URL was already captured
    """
    try:
        source_url, source_type = validate_url(url)
    except InvalidUrlError as e:
        raise ValidationError(e.reason) from e

    existing = repository.get_by_source_url(source_url)
    if existing:
        logger.info(f"Duplicate submission for {source_url} (capture {existing.id})")
        raise DuplicateCaptureError(source_url, existing.id)

    record = CaptureRecord(id=str(uuid.uuid4()), source_url=source_url, source_type=source_type)
    if notes:
        record.platform_data["user_notes"] = notes
    if channel_context:
        record.platform_data["channel_context"] = channel_context.to_dict()
        if channel_context.user_name:
            record.platform_data["submitted_by"] = channel_context.user_name
    repository.insert(record)

    message = CaptureMessage(
        capture_id=record.id,
        url=source_url,
        source_type=source_type,
        notes=notes,
        channel_context=channel_context,
    )
    try:
        queue.publish(message)
    except Exception as e:
        # Record stays pending; requeue_pending picks it up
        logger.error(f"Failed to queue capture {record.id}: {e}")

    return record


def requeue_pending(
    repository: CaptureRepository, queue: CaptureQueue, limit: int | None = None
) -> dict[str, int]:
    """
    Reset failed captures to pending and republish pending captures.

    Returns:
        Counts of reset, queued and errored captures
    """
    reset = 0
    for record in repository.list_captures(status=CaptureStatus.FAILED, limit=limit)[0]:
        if repository.update_status(record.id, CaptureStatus.PENDING):
            reset += 1

    pending, _ = repository.list_captures(status=CaptureStatus.PENDING, limit=limit)
    queued = errors = 0
    for record in pending:
        try:
            queue.publish(message_for_record(record))
            queued += 1
        except Exception as e:
            logger.error(f"Failed to requeue capture {record.id}: {e}")
            errors += 1

    logger.info(f"Requeue: reset {reset} failed, queued {queued} pending, {errors} errors")
    return {"reset": reset, "queued": queued, "errors": errors}
