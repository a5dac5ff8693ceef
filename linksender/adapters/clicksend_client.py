from __future__ import annotations

import logging
from typing import Any

import requests

from linksender.config import DEFAULT_API_URL, LinkSenderConfig
from linksender.domain.models import SmsResult
from linksender.utils.phone import format_phone, mask_phone

logger = logging.getLogger(__name__)

MESSAGE_SOURCE = "linksender"


class ClickSendClient:
    """Send single SMS messages through the ClickSend REST API."""

    def __init__(
        self,
        username: str,
        api_key: str,
        *,
        api_url: str = DEFAULT_API_URL,
        sender_id: str = "GSMG",
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        if not username or not api_key:
            raise ValueError("CLICKSEND_USERNAME and CLICKSEND_API_KEY are required to send SMS.")
        self.api_url = api_url
        self.sender_id = sender_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (username, api_key)

    @classmethod
    def from_config(cls, config: LinkSenderConfig) -> ClickSendClient:
        return cls(
            config.clicksend_username,
            config.clicksend_api_key,
            api_url=config.clicksend_api_url,
            sender_id=config.sms_from,
            timeout=config.http_timeout,
        )

    def build_payload(self, phone: str, body: str) -> dict[str, Any]:
        return {
            "messages": [
                {
                    "source": MESSAGE_SOURCE,
                    "from": self.sender_id,
                    "body": body,
                    "to": format_phone(phone),
                }
            ]
        }

    def send(self, phone: str, body: str) -> SmsResult:
        payload = self.build_payload(phone, body)
        try:
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("ClickSend request to %s failed: %s", mask_phone(phone), exc)
            return SmsResult(success=False, error=str(exc))

        if response.status_code != 200:
            return SmsResult(success=False, error=f"HTTP {response.status_code}: {response.text}")

        try:
            result = response.json()
        except ValueError:
            return SmsResult(success=False, error=f"Unreadable ClickSend response: {response.text[:200]}")

        if result.get("response_code") == "SUCCESS":
            return SmsResult(success=True)
        return SmsResult(success=False, error=f"ClickSend API error: {result.get('response_msg')}")
