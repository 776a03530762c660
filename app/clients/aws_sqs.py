"""
Amazon SQS client wrapper for publishing domain events.
"""

from __future__ import annotations

import json
from typing import Any, Dict

import boto3

from app.core.config import AWSSettings


class SQSClient:
    """Send event envelopes to the event queue."""

    def __init__(self, settings: AWSSettings, client: Any = None) -> None:
        if not settings.event_queue_url:
            raise ValueError("EVENT_QUEUE_URL must be set to publish through SQS.")
        self._queue_url = settings.event_queue_url
        self._client = client or boto3.client("sqs", region_name=settings.region_name)

    def send_message(self, message: Dict[str, Any]) -> str:
        """Push a message onto the queue and return the SQS message id."""
        response = self._client.send_message(
            QueueUrl=self._queue_url,
            MessageBody=json.dumps(message),
            MessageAttributes={
                "messageType": {
                    "DataType": "String",
                    "StringValue": str(message.get("message_type", "")),
                }
            },
        )
        return response["MessageId"]


__all__ = ["SQSClient"]
