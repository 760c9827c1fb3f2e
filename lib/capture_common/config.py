"""Configuration Management for the capture pipeline

Two layers:
- PipelineSettings: deployment settings read from environment variables
  (table, bucket, queue, tokens, timeouts).
- ConfigurationManager: runtime-tunable overrides stored in DynamoDB as two
  entries, Default and Custom. Custom values override Default values.

load_settings() combines both. No caching is used; configuration is read from
DynamoDB on every call for immediate consistency.
"""

import boto3
import os
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional
from botocore.exceptions import ClientError
from copy import deepcopy

from capture_common.constants import (
    DEFAULT_CATEGORIZATION_MODEL,
    DEFAULT_MAX_IMAGES,
    DEFAULT_SEARCH_MODEL,
    SCRAPE_TIMEOUT,
)

logger = logging.getLogger(__name__)

DEFAULT_TWITTER_ACTORS = (
    "apidojo/tweet-scraper",
    "apidojo/twitter-scraper-lite",
    "xtdata/twitter-x-scraper",
)

# Parameters the Custom/Default configuration entries may override
OVERRIDABLE_PARAMETERS = {
    "max_images": "max_images",
    "screenshots_enabled": "screenshots_enabled",
    "categorization_model_id": "categorization_model_id",
    "search_model_id": "search_model_id",
    "twitter_apify_actors": "twitter_apify_actors",
}


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PipelineSettings:
    """
    Deployment settings for the capture Lambdas.

    Attributes:
        captures_table: DynamoDB table holding capture records
        media_bucket: S3 bucket for rehosted media
        media_public_base_url: Optional CDN base used to build public URLs
        capture_queue_url: SQS queue feeding the processing Lambda
        apify_token: Token for the scraping/screenshot service (optional)
        categorization_model_id: Bedrock model used to categorize captures
        search_model_id: Bedrock model used for search intent extraction
        scrape_timeout: Timeout for plain HTML/JSON fetches, in seconds
        max_images: Cap on images collected from a generic page
        screenshots_enabled: Whether generic pages get a screenshot
        region: AWS region
        twitter_apify_actors: Heavyweight tweet actors, tried in order
    """

    captures_table: Optional[str] = None
    media_bucket: Optional[str] = None
    media_public_base_url: Optional[str] = None
    capture_queue_url: Optional[str] = None
    apify_token: Optional[str] = None
    categorization_model_id: str = DEFAULT_CATEGORIZATION_MODEL
    search_model_id: str = DEFAULT_SEARCH_MODEL
    scrape_timeout: float = SCRAPE_TIMEOUT
    max_images: int = DEFAULT_MAX_IMAGES
    screenshots_enabled: bool = True
    region: str = "us-east-1"
    twitter_apify_actors: tuple = field(default=DEFAULT_TWITTER_ACTORS)

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Read settings from environment variables, applying defaults."""
        return cls(
            captures_table=os.environ.get("CAPTURES_TABLE"),
            media_bucket=os.environ.get("MEDIA_BUCKET"),
            media_public_base_url=os.environ.get("MEDIA_PUBLIC_BASE_URL") or None,
            capture_queue_url=os.environ.get("CAPTURE_QUEUE_URL"),
            apify_token=os.environ.get("APIFY_API_TOKEN") or None,
            categorization_model_id=os.environ.get(
                "CATEGORIZATION_MODEL_ID", DEFAULT_CATEGORIZATION_MODEL
            ),
            search_model_id=os.environ.get("SEARCH_MODEL_ID", DEFAULT_SEARCH_MODEL),
            scrape_timeout=float(os.environ.get("SCRAPE_TIMEOUT_SECONDS", SCRAPE_TIMEOUT)),
            max_images=int(os.environ.get("MAX_IMAGES", DEFAULT_MAX_IMAGES)),
            screenshots_enabled=_env_bool("SCREENSHOTS_ENABLED", True),
            region=os.environ.get("AWS_REGION", "us-east-1"),
        )

    def with_overrides(self, overrides: Dict[str, Any]) -> "PipelineSettings":
        """
        Return a copy with runtime overrides applied.

        Unknown keys are ignored. DynamoDB numbers arrive as Decimal and are
        coerced back to the field's type.
        """
        changes: Dict[str, Any] = {}
        for key, attr in OVERRIDABLE_PARAMETERS.items():
            if key not in overrides or overrides[key] is None:
                continue
            value = overrides[key]
            if attr == "max_images":
                value = int(value)
            elif attr == "screenshots_enabled":
                value = value if isinstance(value, bool) else str(value).lower() == "true"
            elif attr == "twitter_apify_actors":
                value = tuple(str(v) for v in value)
            else:
                value = str(value)
            changes[attr] = value

        if changes:
            logger.info(f"Applying configuration overrides: {sorted(changes)}")
        return replace(self, **changes)


class ConfigurationManager:
    """
    Reads runtime configuration overrides from DynamoDB.

    The table has a single partition key 'Configuration' with two reserved
    values: Default and Custom.

    Usage:
        config_manager = ConfigurationManager()
        overrides = config_manager.get_effective_config()

    Design Decisions:
        - No caching: reads from DynamoDB on every call
        - Fails fast: raises if table access fails
        - Merges Custom → Default
    """

    def __init__(self, table_name: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            table_name: Configuration table name. If not provided, reads from
                       CONFIGURATION_TABLE_NAME environment variable.

        Raises:
            ValueError: If table_name not provided and env var not set
        """
        table_name = table_name or os.environ.get('CONFIGURATION_TABLE_NAME')
        if not table_name:
            raise ValueError(
                "Configuration table name not provided. "
                "Set CONFIGURATION_TABLE_NAME environment variable or provide table_name parameter."
            )

        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name

        logger.info(f"Initialized ConfigurationManager with table: {table_name}")

    def get_configuration_item(self, config_type: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a configuration entry ('Default' or 'Custom').

        Returns:
            Configuration dictionary if found, None if item doesn't exist

        Raises:
            ClientError: If DynamoDB access fails
        """
        try:
            response = self.table.get_item(Key={'Configuration': config_type})
        except ClientError:
            logger.exception(f"Error retrieving {config_type} configuration")
            raise

        item = response.get('Item')
        if not item:
            logger.debug(f"{config_type} configuration not found in DynamoDB")
        return item

    def get_effective_config(self) -> Dict[str, Any]:
        """
        Get effective configuration by merging Custom → Default.

        Raises:
            ClientError: If DynamoDB access fails
        """
        default_config = self._remove_partition_key(self.get_configuration_item('Default'))
        custom_config = self._remove_partition_key(self.get_configuration_item('Custom'))

        effective_config = deepcopy(default_config)
        effective_config.update(custom_config)

        logger.info(f"Effective configuration: {list(effective_config.keys())}")
        return effective_config

    @staticmethod
    def _remove_partition_key(item: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Remove the 'Configuration' partition key from a DynamoDB item."""
        if not item:
            return {}
        item_copy = dict(item)
        item_copy.pop('Configuration', None)
        return item_copy


def load_settings() -> PipelineSettings:
    """
    Build settings from the environment plus DynamoDB overrides.

    Overrides are only read when CONFIGURATION_TABLE_NAME is set.
    """
    settings = PipelineSettings.from_env()
    if not os.environ.get('CONFIGURATION_TABLE_NAME'):
        return settings
    return settings.with_overrides(ConfigurationManager().get_effective_config())
