"""
Bedrock client for categorization and search intent calls.

Wraps the Converse API with:
- Exponential backoff with jitter on throttling and timeouts
- Token usage tracking per call context
- A generate_text() shortcut for the system + user prompt case
"""

import logging
import os
import random
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, ConnectTimeoutError, ReadTimeoutError

from capture_common.constants import BEDROCK_READ_TIMEOUT

logger = logging.getLogger(__name__)

# Capture processing runs inside one Lambda invocation, so retries stay short.
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 1  # seconds
DEFAULT_MAX_BACKOFF = 20

RETRYABLE_ERROR_CODES = frozenset(
    {
        "ThrottlingException",
        "ServiceQuotaExceededException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "ServiceUnavailableException",
        "ModelErrorException",
        "RequestTimeout",
        "RequestTimeoutException",
    }
)


class BedrockClient:
    """Client for invoking Amazon Bedrock text models."""

    def __init__(
        self,
        region: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        client: Any = None,
    ):
        """
        Initialize a Bedrock client.

        Args:
            region: AWS region (defaults to AWS_REGION env var or us-east-1)
            max_retries: Maximum number of retry attempts
            initial_backoff: Initial backoff time in seconds
            max_backoff: Maximum backoff time in seconds
            client: Pre-built bedrock-runtime client (tests)
        """
        self.region = region or os.environ.get("AWS_REGION", "us-east-1")
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self._client = client
        self.metering_data: dict[str, dict[str, int]] = {}

    @property
    def client(self):
        """Lazy-loaded bedrock-runtime client."""
        if self._client is None:
            config = Config(connect_timeout=10, read_timeout=BEDROCK_READ_TIMEOUT)
            self._client = boto3.client("bedrock-runtime", region_name=self.region, config=config)
        return self._client

    def invoke_model(
        self,
        model_id: str,
        system_prompt: str | list[dict[str, str]],
        content: list[dict[str, Any]],
        temperature: float = 0.0,
        max_tokens: int | None = None,
        context: str = "Unspecified",
    ) -> dict[str, Any]:
        """
        Invoke a Bedrock model through the Converse API with retry.

        Args:
            model_id: Bedrock model or inference profile ID
            system_prompt: System prompt as a string or list of content blocks
            content: User message content blocks
            temperature: Sampling temperature
            max_tokens: Optional output token cap
            context: Label used as the metering key prefix

        Returns:
            Dict with the raw "response" and its "metering" entry
        """
        system = [{"text": system_prompt}] if isinstance(system_prompt, str) else system_prompt

        inference_config: dict[str, Any] = {"temperature": temperature}
        if max_tokens is not None:
            inference_config["maxTokens"] = max_tokens

        converse_params = {
            "modelId": model_id,
            "messages": [{"role": "user", "content": content}],
            "system": system,
            "inferenceConfig": inference_config,
        }

        start = time.time()
        attempt = 0
        while True:
            logger.info(f"Bedrock request attempt {attempt + 1}/{self.max_retries + 1}: {model_id}")
            try:
                response = self.client.converse(**converse_params)
            except ClientError as e:
                error_code = e.response["Error"]["Code"]
                error_message = e.response["Error"]["Message"]
                if error_code not in RETRYABLE_ERROR_CODES:
                    logger.error(f"Non-retryable Bedrock error: {error_code} - {error_message}")
                    raise
                if attempt >= self.max_retries:
                    logger.error(
                        f"Max retries ({self.max_retries}) exceeded. Last error: {error_message}"
                    )
                    raise
                reason = f"throttling ({error_code})"
            except (ReadTimeoutError, ConnectTimeoutError):
                if attempt >= self.max_retries:
                    logger.error(f"Max retries ({self.max_retries}) exceeded on timeout")
                    raise
                reason = "timeout"
            else:
                return self._record_usage(model_id, context, response, start)

            backoff = self._calculate_backoff(attempt)
            logger.warning(
                f"Bedrock {reason} (attempt {attempt + 1}/{self.max_retries + 1}). "
                f"Backing off for {backoff:.2f}s"
            )
            time.sleep(backoff)
            attempt += 1

    def generate_text(
        self,
        model_id: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.0,
        context: str = "Unspecified",
    ) -> str:
        """
        Run one system + user prompt exchange and return the reply text.

        Raises:
            ClientError: If Bedrock fails after retries
        """
        response = self.invoke_model(
            model_id=model_id,
            system_prompt=system_prompt,
            content=[{"text": user_prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            context=context,
        )
        return self.extract_text_from_response(response)

    def _record_usage(
        self, model_id: str, context: str, response: dict[str, Any], start: float
    ) -> dict[str, Any]:
        usage = response.get("usage", {})
        logger.info(f"Bedrock request successful. Duration: {time.time() - start:.2f}s")
        logger.debug(f"Token Usage: {usage}")

        metering_key = f"{context}/bedrock/{model_id}"
        totals = self.metering_data.setdefault(
            metering_key, {"inputTokens": 0, "outputTokens": 0, "totalTokens": 0}
        )
        for name in totals:
            totals[name] += usage.get(name, 0)

        return {"response": response, "metering": {metering_key: usage}}

    def extract_text_from_response(self, response: dict[str, Any]) -> str:
        """
        Extract text from a Converse response with safe navigation.

        Returns:
            Text of the first content block, or empty string if the shape is unexpected
        """
        content = response.get("response", {}).get("output", {}).get("message", {}).get("content", [])
        if isinstance(content, list) and content and isinstance(content[0], dict):
            return content[0].get("text", "")
        return ""

    def _calculate_backoff(self, retry_count: int) -> float:
        """Exponential backoff capped at max_backoff, plus up to 1s of jitter."""
        backoff_seconds = min(self.max_backoff, self.initial_backoff * (2**retry_count))
        return backoff_seconds + random.random()
