"""
Process Capture Lambda

Runs one capture through the pipeline per SQS record: scrape with the
platform's fallback chain, rehost media, categorize, persist.

Input event (SQS triggered):
{
    "Records": [{
        "messageId": "...",
        "body": "{\"captureId\": \"uuid\", \"url\": \"https://...\",
                  \"sourceType\": \"web\", \"notes\": \"...\"}"
    }]
}

Output (ReportBatchItemFailures):
{
    "batchItemFailures": [{"itemIdentifier": "messageId"}]
}
"""

import logging
import os

from capture_common.config import load_settings
from capture_common.pipeline import Failed, build_pipeline_context, process_capture
from capture_common.queue import parse_sqs_record

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

# Built on first invocation and reused by warm containers
_context = None


def get_context():
    global _context
    if _context is None:
        _context = build_pipeline_context(load_settings())
    return _context


def lambda_handler(event, context):
    """
    Process SQS capture messages. Failed captures and errors are reported back
    for redelivery.
    """
    if not os.environ.get("CAPTURES_TABLE"):
        raise ValueError("CAPTURES_TABLE environment variable required")
    if not os.environ.get("MEDIA_BUCKET"):
        raise ValueError("MEDIA_BUCKET environment variable required")

    ctx = get_context()
    batch_item_failures = []

    for record in event.get("Records", []):
        message_id = record.get("messageId")

        try:
            message = parse_sqs_record(record)
            outcome = process_capture(message, ctx)
            if isinstance(outcome, Failed):
                logger.warning(f"Capture {outcome.capture_id} failed; reporting for retry")
                batch_item_failures.append({"itemIdentifier": message_id})
            else:
                logger.info(f"Capture {outcome.capture_id} complete")

        except Exception as e:
            logger.error(f"Failed to process message {message_id}: {e}", exc_info=True)
            batch_item_failures.append({"itemIdentifier": message_id})

    # Return failures for SQS to retry (ReportBatchItemFailures)
    return {"batchItemFailures": batch_item_failures}
