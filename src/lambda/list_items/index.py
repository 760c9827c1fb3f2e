"""
List Items Lambda

Pages through the capture library newest first, with optional status, source
type, topic and substring search filters. No ranking and no model call.

Input event (API Gateway):
{
    "httpMethod": "GET",
    "queryStringParameters": {"page": "1", "limit": "24", "status": "complete",
                              "source_type": "twitter", "topic": "Design",
                              "search": "tokens"}
}

Output:
{
    "statusCode": 200,
    "body": "{\"items\": [...], \"total\": 40, \"page\": 1, \"limit\": 24,
              \"totalPages\": 2}"
}
"""

import json
import logging
import os

from botocore.exceptions import ClientError

from capture_common.browse import list_items
from capture_common.exceptions import ValidationError
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
    Main Lambda handler - lists one page of captures.
    """
    captures_table = os.environ.get("CAPTURES_TABLE")
    if not captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")

    params = event.get("queryStringParameters") or {}
    if "httpMethod" not in event:
        params = event

    try:
        results = list_items(
            CaptureRepository(captures_table),
            page=params.get("page"),
            limit=params.get("limit"),
            status=params.get("status"),
            source_type=params.get("source_type"),
            topic=params.get("topic"),
            search=params.get("search"),
        )
        logger.info(f"Listed page {results.page}: {len(results.items)} items of {results.total}")
        return _response(200, results.to_dict())

    except ValidationError as e:
        return _response(400, {"error": str(e)})
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        logger.error(f"AWS error: {error_code} - {e}")
        return _response(500, {"error": "Failed to fetch items"})
    except Exception as e:
        logger.error(f"Listing failed: {e}", exc_info=True)
        return _response(500, {"error": "Internal server error"})
