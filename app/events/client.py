from __future__ import annotations

from typing import Any

import requests
from django.conf import settings


class SummaryWebhookClient:
    """Posts computed daily summaries to the campus notification service."""

    def __init__(self, url: str, token: str = "", timeout: int = 10):
        self.url = url
        self.token = token
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> SummaryWebhookClient | None:
        url = getattr(settings, "ATTENDANCE_SUMMARY_WEBHOOK_URL", "")
        if not url:
            return None
        return cls(
            url,
            token=getattr(settings, "ATTENDANCE_SUMMARY_WEBHOOK_TOKEN", ""),
            timeout=getattr(settings, "ATTENDANCE_SUMMARY_TIMEOUT", 10),
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = requests.post(
            self.url,
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json() if response.content else {}

    def send_daily_summary(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._post({"type": "attendance.daily_summary", "summary": payload})
