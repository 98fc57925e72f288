"""Expo push gateway client.

One POST per notification. The gateway answers `{"data": {"status": "ok"}}`
on success; anything else, including transport errors, is a failed send.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class PushResponse:
    ok: bool
    payload: dict = field(default_factory=dict)

    @property
    def error_message(self) -> Optional[str]:
        data = self.payload.get("data")
        if isinstance(data, dict) and data.get("message"):
            return data["message"]
        return self.payload.get("error")


class ExpoPushGateway:
    """Sends push messages through the Expo push API."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None):
        self.url = url or settings.EXPO_PUSH_URL
        self.timeout = timeout or settings.PUSH_TIMEOUT_SECONDS

    def send(self, to: str, title: str, body: str, data: Optional[dict] = None) -> PushResponse:
        message = {
            "to": to,
            "title": title,
            "body": body,
            "sound": "default",
            "data": data or {},
        }
        try:
            resp = requests.post(
                self.url,
                json=message,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip, deflate",
                },
                timeout=self.timeout,
            )
            result = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Expo push request failed: {e}")
            return PushResponse(ok=False, payload={"error": str(e)})

        if not isinstance(result, dict):
            return PushResponse(ok=False, payload={"error": "unexpected response", "raw": result})

        data_field = result.get("data")
        ok = isinstance(data_field, dict) and data_field.get("status") == "ok"
        return PushResponse(ok=ok, payload=result)


def get_push_gateway() -> ExpoPushGateway:
    return ExpoPushGateway()
