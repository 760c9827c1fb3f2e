"""
Capture Status Lambda

Returns the current status and categorization of one capture.

Input event (API Gateway):
{
    "httpMethod": "GET",
    "pathParameters": {"capture_id": "uuid"}
}

Output:
{
    "statusCode": 200,
    "body": "{\"id\": \"uuid\", \"status\": \"complete\", \"sourceType\": \"web\", ...}"
}
"""

import json
import logging
import os

from botocore.exceptions import ClientError

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
            "Access-Control-Allow-Methods": "GET,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type,Authorization",
        },
        "body": json.dumps(body),
    }


def lambda_handler(event, context):
    """
    Main Lambda handler - looks up a capture by id.
    """
    captures_table = os.environ.get("CAPTURES_TABLE")
    if not captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")

    path_params = event.get("pathParameters") or {}
    capture_id = path_params.get("capture_id") or event.get("capture_id")
    if not capture_id:
        return _response(400, {"error": "capture_id is required"})

    try:
        record = CaptureRepository(captures_table).get(capture_id)
        if record is None:
            return _response(404, {"error": f"Capture not found: {capture_id}"})

        return _response(
            200,
            {
                "id": record.id,
                "status": record.status.value,
                "sourceType": record.source_type.value,
                "sourceUrl": record.source_url,
                "title": record.title,
                "summary": record.summary,
                "topics": record.topics,
                "disciplines": record.disciplines,
                "useCases": record.use_cases,
                "errorMessage": record.error_message,
                "capturedAt": record.captured_at.isoformat(),
                "processedAt": record.processed_at.isoformat() if record.processed_at else None,
            },
        )

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        logger.error(f"AWS error: {error_code} - {e}")
        return _response(500, {"error": "Internal server error"})
    except Exception as e:
        logger.error(f"Failed to get capture status: {e}", exc_info=True)
        return _response(500, {"error": "Internal server error"})
