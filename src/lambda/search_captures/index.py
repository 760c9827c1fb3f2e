"""
Search Captures Lambda

Searches completed captures. The default mode extracts a search intent with
Bedrock and re-ranks keyword matches; mode=basic does a plain substring
search without a model call.

Input event (API Gateway):
{
    "httpMethod": "GET",
    "queryStringParameters": {"q": "design systems", "page": "1", "limit": "24",
                              "mode": "intent"}
}

Output:
{
    "statusCode": 200,
    "body": "{\"items\": [...], \"total\": 40, \"page\": 1, \"limit\": 24,
              \"totalPages\": 2, \"intent\": {...}}"
}
"""

import json
import logging
import os

from botocore.exceptions import ClientError

from capture_common.bedrock import BedrockClient
from capture_common.config import load_settings
from capture_common.exceptions import ValidationError
from capture_common.records import CaptureRepository
from capture_common.search import SearchIntentExtractor, basic_search, search_captures

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

SEARCH_MODES = ("intent", "basic")


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
    Main Lambda handler - runs a capture search.
    """
    captures_table = os.environ.get("CAPTURES_TABLE")
    if not captures_table:
        raise ValueError("CAPTURES_TABLE environment variable required")

    params = event.get("queryStringParameters") or {}
    if "httpMethod" not in event:
        params = event

    try:
        query = params.get("q") or params.get("query") or ""
        mode = (params.get("mode") or "intent").lower()
        if mode not in SEARCH_MODES:
            raise ValidationError(f"mode must be one of: {', '.join(SEARCH_MODES)}")

        repository = CaptureRepository(captures_table)
        if mode == "basic":
            results = basic_search(query, repository, params.get("page"), params.get("limit"))
        else:
            settings = load_settings()
            extractor = SearchIntentExtractor(
                BedrockClient(region=settings.region), settings.search_model_id
            )
            results = search_captures(
                query, repository, extractor, params.get("page"), params.get("limit")
            )

        logger.info(
            f"Search {mode} q={query!r} page={results.page}: "
            f"{len(results.items)} items of {results.total}"
        )
        return _response(200, results.to_dict())

    except ValidationError as e:
        return _response(400, {"error": str(e)})
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        logger.error(f"AWS error: {error_code} - {e}")
        return _response(500, {"error": "Internal server error"})
    except Exception as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        return _response(500, {"error": "Internal server error"})
