"""
DynamoDB repository for capture records.

Table layout:
- Partition key: id (string)
- GSI SourceUrlIndex: source_url (string), used for the pre-enqueue dedup check

Every write after the initial insert is a full-record replace keyed by id, so
re-processing the same capture converges on the same item.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from capture_common.constants import MAX_ERROR_MESSAGE_LENGTH, SOURCE_URL_INDEX
from capture_common.models import CaptureRecord, CaptureStatus, ContentType, SourceType

logger = logging.getLogger(__name__)

# Fields searched for keyword matches, in scoring order
SEARCHABLE_FIELDS = ("title", "description", "summary", "body_text")


def to_dynamo(obj: Any) -> Any:
    """Convert floats to Decimal, recursively. boto3 rejects float attributes."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: to_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [to_dynamo(item) for item in obj]
    return obj


def from_dynamo(obj: Any) -> Any:
    """Convert Decimals back to int or float, recursively."""
    if isinstance(obj, dict):
        return {k: from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [from_dynamo(item) for item in obj]
    if isinstance(obj, Decimal):
        return int(obj) if obj % 1 == 0 else float(obj)
    return obj


def _matches_keywords(
    item: dict[str, Any], keywords: list[str], fields: tuple[str, ...] = SEARCHABLE_FIELDS
) -> bool:
    if not keywords:
        return True
    haystacks = [str(item.get(field) or "").lower() for field in fields]
    return any(kw.lower() in text for kw in keywords for text in haystacks)


class CaptureRepository:
    """
    Record store for captures.

    Args:
        table_name: DynamoDB table name
        table: Pre-built Table resource (tests)
    """

    def __init__(self, table_name: str | None = None, table=None):
        if table is None:
            if not table_name:
                raise ValueError("table_name is required")
            table = boto3.resource("dynamodb").Table(table_name)
        self.table = table
        self.table_name = table_name or getattr(table, "name", "")

    def get(self, capture_id: str) -> CaptureRecord | None:
        """Fetch a capture by id, or None if it doesn't exist."""
        response = self.table.get_item(Key={"id": capture_id})
        item = response.get("Item")
        return CaptureRecord.from_dict(from_dynamo(item)) if item else None

    def get_by_source_url(self, source_url: str) -> CaptureRecord | None:
        """Find the capture for a normalized source URL."""
        response = self.table.query(
            IndexName=SOURCE_URL_INDEX,
            KeyConditionExpression=Key("source_url").eq(source_url),
            Limit=1,
        )
        items = response.get("Items", [])
        return CaptureRecord.from_dict(from_dynamo(items[0])) if items else None

    def insert(self, record: CaptureRecord) -> None:
        """
        Create a new capture.

        Raises:
            ClientError: ConditionalCheckFailedException if the id already exists
        """
        self.table.put_item(
            Item=to_dynamo(record.to_dict()),
            ConditionExpression="attribute_not_exists(id)",
        )
        logger.info(f"Inserted capture {record.id} ({record.source_type.value})")

    def put(self, record: CaptureRecord) -> None:
        """Replace the whole capture keyed by id."""
        record.updated_at = datetime.now(UTC)
        self.table.put_item(Item=to_dynamo(record.to_dict()))
        logger.info(f"Wrote capture {record.id} with status {record.status.value}")

    def update_status(
        self,
        capture_id: str,
        status: CaptureStatus,
        error_message: str | None = None,
    ) -> bool:
        """
        Set the status of an existing capture.

        The error message is written when given and removed otherwise.

        Returns:
            True if the capture existed and was updated, False otherwise
        """
        names = {"#status": "status", "#updated_at": "updated_at", "#error": "error_message"}
        values: dict[str, Any] = {
            ":status": status.value,
            ":updated_at": datetime.now(UTC).isoformat(),
        }
        if error_message:
            update_expr = "SET #status = :status, #updated_at = :updated_at, #error = :error"
            values[":error"] = error_message[:MAX_ERROR_MESSAGE_LENGTH]
        else:
            update_expr = "SET #status = :status, #updated_at = :updated_at REMOVE #error"

        try:
            self.table.update_item(
                Key={"id": capture_id},
                UpdateExpression=update_expr,
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.warning(f"Capture {capture_id} not found for status update")
                return False
            raise

        logger.info(f"Capture {capture_id} -> {status.value}")
        return True

    def _scan_status(self, status: CaptureStatus) -> list[dict[str, Any]]:
        kwargs: dict[str, Any] = {"FilterExpression": Attr("status").eq(status.value)}
        items: list[dict[str, Any]] = []
        while True:
            response = self.table.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def list_captures(
        self,
        status: CaptureStatus = CaptureStatus.COMPLETE,
        keywords: list[str] | None = None,
        source_types: list[SourceType] | None = None,
        content_types: list[ContentType] | None = None,
        topic: str | None = None,
        offset: int = 0,
        limit: int | None = None,
        search_fields: tuple[str, ...] = SEARCHABLE_FIELDS,
        order_by: str = "created_at",
    ) -> tuple[list[CaptureRecord], int]:
        """
        List captures newest first with optional filters.

        Keywords match case-insensitively as substrings of search_fields (any
        keyword, any field). Type filters are one-of; topic must be one of the
        record's topics exactly. Ordering is by order_by, descending.

        Returns:
            Tuple of (page of records, exact count of all matching records)
        """
        source_values = {s.value for s in source_types or []}
        content_values = {c.value for c in content_types or []}

        matches = [
            item
            for item in self._scan_status(status)
            if _matches_keywords(item, keywords or [], search_fields)
            and (not source_values or item.get("source_type") in source_values)
            and (not content_values or item.get("content_type") in content_values)
            and (topic is None or topic in (item.get("topics") or []))
        ]
        matches.sort(key=lambda item: item.get(order_by) or "", reverse=True)

        end = None if limit is None else offset + limit
        page = [CaptureRecord.from_dict(from_dynamo(item)) for item in matches[offset:end]]
        logger.debug(f"list_captures({status.value}) matched {len(matches)} items")
        return page, len(matches)
