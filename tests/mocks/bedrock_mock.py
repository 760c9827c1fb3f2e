"""Bedrock API mock responses for testing.

This module provides mock response generators for Bedrock API calls,
enabling unit tests to run without live AWS calls.
"""

import json
from typing import Any
from unittest.mock import MagicMock


def create_converse_response(
    text: str,
    input_tokens: int = 100,
    output_tokens: int = 50,
) -> dict[str, Any]:
    """
    Create a mock Bedrock converse API response.

    Args:
        text: The text content to return.
        input_tokens: Simulated input token count.
        output_tokens: Simulated output token count.

    Returns:
        Mock response dictionary matching the raw Converse API structure.
    """
    return {
        "output": {
            "message": {
                "content": [{"text": text}],
                "role": "assistant",
            }
        },
        "stopReason": "end_turn",
        "usage": {
            "inputTokens": input_tokens,
            "outputTokens": output_tokens,
            "totalTokens": input_tokens + output_tokens,
        },
    }


# Pre-built model replies for common test scenarios

CATEGORIZATION_REPLY = json.dumps(
    {
        "summary": "A practical guide to building design systems for small teams.",
        "topics": ["Design", "Startups"],
        "discipline": "UX/UI",
        "useCases": ["Tutorial", "Reference"],
        "contentType": "article",
    }
)

SEARCH_INTENT_REPLY = json.dumps(
    {
        "keywords": ["design system", "component library"],
        "topics": ["Design"],
        "useCases": ["Tutorial"],
        "sourceTypes": [],
        "contentTypes": [],
        "searchStrategy": "focused",
    }
)


def create_mock_bedrock_client(reply: str | Exception | None = None) -> MagicMock:
    """
    Create a fully mocked BedrockClient.

    Args:
        reply: Text returned by generate_text, or an exception it raises.

    Returns:
        MagicMock configured as a BedrockClient.
    """
    mock = MagicMock()

    if isinstance(reply, Exception):
        mock.generate_text.side_effect = reply
    else:
        mock.generate_text.return_value = CATEGORIZATION_REPLY if reply is None else reply

    mock.metering_data = {}

    return mock
