"""
Requeue Captures Lambda

Resets failed captures to pending and republishes every pending capture to
the processing queue. Runs on a schedule or manually.

Input event (EventBridge schedule or direct invocation):
{
    "limit": 50   # optional, per status
}

Output:
{
    "reset": 3,
    "queued": 5,
    "errors": 0
}
"""

import json
import logging
import os

from botocore.exceptions import ClientError

from capture_common.ingestion import requeue_pending
from capture_common.queue import CaptureQueue
from capture_common.records import CaptureRepository

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))


def lambda_handler(event, context):
    """
    Main Lambda handler - requeues failed and pending captures.
    """
    captures_table = os.environ.get("CAPTURES_TABLE")
    queue_url = os.environ.get("CAPTURE_QUEUE_URL")

    if not captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")
    if not queue_url:
        raise ValueError("CAPTURE_QUEUE_URL environment variable required")

    event = event or {}
    limit = event.get("limit")
    if limit is not None:
        limit = int(limit)
        if limit < 1:
            raise ValueError("limit must be a positive integer")

    try:
        result = requeue_pending(
            CaptureRepository(captures_table), CaptureQueue(queue_url), limit=limit
        )
        logger.info(f"Requeue result: {json.dumps(result)}")
        return result

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        logger.error(f"AWS error: {error_code} - {e}")
        raise
