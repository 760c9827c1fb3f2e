"""
Capture Submit Lambda

Accepts a URL for capture: validates and normalizes it, rejects duplicates,
creates a pending record and queues it for processing.

Input event (API Gateway):
{
    "httpMethod": "POST",
    "body": "{\"url\": \"https://x.com/user/status/123\", \"notes\": \"...\",
              \"channelContext\": {\"messageId\": \"...\", \"channelId\": \"...\",
                                   \"userId\": \"...\", \"userName\": \"...\",
                                   \"messageText\": \"...\"}}"
}

Input event (direct invocation): the same fields at the top level.

Output:
{
    "statusCode": 202,
    "body": "{\"id\": \"uuid\", \"sourceUrl\": \"...\", \"sourceType\": \"twitter\",
              \"status\": \"pending\"}"
}
"""

import json
import logging
import os

from botocore.exceptions import ClientError

from capture_common.exceptions import DuplicateCaptureError, ValidationError
from capture_common.ingestion import parse_channel_context, submit_capture
from capture_common.logging_utils import safe_log_event
from capture_common.queue import CaptureQueue
from capture_common.records import CaptureRepository

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))


def _response(status_code: int, body: dict) -> dict:
    """Create API Gateway proxy response."""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "POST,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type,Authorization",
        },
        "body": json.dumps(body),
    }


def _parse_request(event: dict) -> dict:
    """Return the request payload from an API Gateway or direct event."""
    if "body" not in event:
        return event
    body = event.get("body") or "{}"
    if isinstance(body, dict):
        return body
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def lambda_handler(event, context):
    """
    Main Lambda handler - submits a URL for capture.
    """
    captures_table = os.environ.get("CAPTURES_TABLE")
    queue_url = os.environ.get("CAPTURE_QUEUE_URL")

    if not captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")
    if not queue_url:
        raise ValueError("CAPTURE_QUEUE_URL environment variable required")

    logger.info(f"Capture request: {json.dumps(safe_log_event(event), default=str)}")

    try:
        payload = _parse_request(event)
        url = payload.get("url")
        if not url or not isinstance(url, str):
            raise ValidationError("url is required")
        notes = payload.get("notes")
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("notes must be a string")

        record = submit_capture(
            url,
            repository=CaptureRepository(captures_table),
            queue=CaptureQueue(queue_url),
            notes=notes or None,
            channel_context=parse_channel_context(payload.get("channelContext")),
        )

        return _response(
            202,
            {
                "id": record.id,
                "sourceUrl": record.source_url,
                "sourceType": record.source_type.value,
                "status": record.status.value,
            },
        )

    except ValidationError as e:
        logger.info(f"Rejected capture request: {e}")
        return _response(400, {"error": str(e)})
    except DuplicateCaptureError as e:
        return _response(
            409,
            {
                "error": "URL already captured",
                "code": "DUPLICATE",
                "existingId": e.existing_id,
                "sourceUrl": e.source_url,
            },
        )
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        logger.error(f"AWS error: {error_code} - {e}")
        return _response(500, {"error": "Internal server error"})
    except Exception as e:
        logger.error(f"Error submitting capture: {e}", exc_info=True)
        return _response(500, {"error": "Internal server error"})
