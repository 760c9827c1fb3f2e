"""
Capture Filters Lambda

Returns the filter options of the capture library: source types, topics and
disciplines of complete captures with their counts, most common first.

Input event (API Gateway):
{
    "httpMethod": "GET"
}

Output:
{
    "statusCode": 200,
    "body": "{\"sourceTypes\": [{\"name\": \"web\", \"count\": 12}], \"topics\": [...],
              \"disciplines\": [...], \"totalItems\": 20}"
}
"""

import json
import logging
import os

from botocore.exceptions import ClientError

from capture_common.browse import capture_facets
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
    Main Lambda handler - counts filter facets.
    """
    captures_table = os.environ.get("CAPTURES_TABLE")
    if not captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")

    try:
        return _response(200, capture_facets(CaptureRepository(captures_table)))
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        logger.error(f"AWS error: {error_code} - {e}")
        return _response(500, {"error": "Failed to fetch filters"})
    except Exception as e:
        logger.error(f"Filter facets failed: {e}", exc_info=True)
        return _response(500, {"error": "Internal server error"})
