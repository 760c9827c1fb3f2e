"""
SQS transport for capture messages.

Publishing is fire-and-forget from submission; delivery happens through the
SQS event source of the process_capture Lambda, which reports failed captures
back as batch item failures for redelivery.
"""

import json
import logging
import time
from typing import Any

import boto3

from capture_common.models import CaptureMessage

logger = logging.getLogger(__name__)


class CaptureQueue:
    """
    Publishes CaptureMessages to the processing queue.

    Args:
        queue_url: SQS queue URL (FIFO queues get a MessageGroupId per capture)
        client: Pre-built SQS client (tests)
    """

    def __init__(self, queue_url: str, client=None):
        if not queue_url:
            raise ValueError("queue_url is required")
        self.queue_url = queue_url
        self.client = client or boto3.client("sqs")

    def publish(self, message: CaptureMessage) -> str:
        """
        Send one capture message.

        Returns:
            SQS MessageId

        Raises:
            ClientError: If SQS rejects the message
        """
        send_params: dict[str, Any] = {
            "QueueUrl": self.queue_url,
            "MessageBody": json.dumps(message.to_dict()),
            "MessageAttributes": {
                "captureId": {"DataType": "String", "StringValue": message.capture_id},
                "sourceType": {"DataType": "String", "StringValue": message.source_type.value},
            },
        }
        # Only add MessageGroupId for FIFO queues; dedup ids are per publish so a
        # requeue is not dropped as a duplicate
        if self.queue_url.endswith(".fifo"):
            send_params["MessageGroupId"] = message.capture_id
            send_params["MessageDeduplicationId"] = f"{message.capture_id}-{int(time.time() * 1000)}"

        response = self.client.send_message(**send_params)
        logger.info(f"Queued capture {message.capture_id} ({message.source_type.value})")
        return response.get("MessageId", "")


def parse_sqs_record(record: dict[str, Any]) -> CaptureMessage:
    """
    Decode the body of one SQS event record.

    Raises:
        ValueError: If the body is not a valid capture message
    """
    try:
        body = json.loads(record["body"])
        return CaptureMessage.from_dict(body)
    except (KeyError, TypeError, json.JSONDecodeError) as e:
        raise ValueError(f"Malformed capture message: {e}") from e
