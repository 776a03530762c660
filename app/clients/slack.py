"""Slack incoming-webhook reporter for operational errors."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

_DANGER = "#D50200"


class SlackReporter:
    """Post short error reports to a Slack channel.

    Without a webhook URL reports are only logged. Delivery problems are
    logged and never raised, so a report cannot mask the error it describes.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        application_name: str = "Feen",
        timeout: float = 5.0,
    ) -> None:
        self._webhook_url = webhook_url
        self._application_name = application_name
        self._timeout = timeout

    def build_payload(
        self, text: str, channel: str, fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        attachment_fields = [
            {"title": key, "value": "" if value is None else str(value), "short": True}
            for key, value in (fields or {}).items()
        ]
        return {
            "text": f"[{self._application_name}] {channel}: {text}",
            "attachments": [{"color": _DANGER, "fields": attachment_fields}],
        }

    async def send_message(
        self, text: str, channel: str, fields: Optional[Dict[str, Any]] = None
    ) -> bool:
        if not self._webhook_url:
            logger.warning("Slack report (%s): %s", channel, text)
            return False

        payload = self.build_payload(text, channel, fields)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Error sending message to Slack. Reason: %s", exc)
            return False
        return True


__all__ = ["SlackReporter"]
