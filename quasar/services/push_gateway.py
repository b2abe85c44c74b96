"""
Firebase Cloud Messaging client for browser/device push notifications
"""
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from quasar.core.config import get_settings
from quasar.core.logging_config import LoggingConfig
from quasar.core.metrics import push_notifications_total

logger = LoggingConfig.get_logger(__name__)


class PushResult(BaseModel):
    """Outcome of one push send"""
    sent: int = 0
    failed: int = 0
    skipped: bool = False
    invalid_tokens: List[str] = []


class PushError(Exception):
    """Transport or protocol failure talking to FCM"""
    pass


class PushGateway:
    """Sends notifications through the FCM legacy HTTP endpoint"""

    def __init__(
        self,
        server_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        settings = get_settings()
        self.server_key = server_key if server_key is not None else settings.fcm_server_key
        self.endpoint = endpoint or settings.fcm_endpoint
        self.timeout = timeout or settings.fcm_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.server_key)

    def send(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> PushResult:
        """
        Push a notification to registration tokens

        Returns a skipped result when no server key is configured or there are
        no tokens. Raises PushError on HTTP failures.
        """
        tokens = [token for token in tokens if token]
        if not self.enabled or not tokens:
            push_notifications_total.labels(status="skipped").inc()
            return PushResult(skipped=True)

        payload = {
            "registration_ids": tokens,
            "notification": {"title": title, "body": body},
            "data": {key: str(value) for key, value in (data or {}).items()},
        }
        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.endpoint, json=payload, headers=headers)
                response.raise_for_status()
                body_json = response.json()
        except (httpx.HTTPError, ValueError) as e:
            push_notifications_total.labels(status="failed").inc()
            raise PushError(f"FCM request failed: {e}") from e

        results = body_json.get("results") if isinstance(body_json, dict) else None
        if not isinstance(results, list) or not all(isinstance(item, dict) for item in results):
            push_notifications_total.labels(status="failed").inc()
            raise PushError(f"Unexpected FCM response: {str(body_json)[:200]}")
        invalid = [
            token for token, result in zip(tokens, results)
            if result.get("error") in ("NotRegistered", "InvalidRegistration")
        ]
        try:
            result = PushResult(
                sent=int(body_json.get("success", 0)),
                failed=int(body_json.get("failure", 0)),
                invalid_tokens=invalid,
            )
        except (TypeError, ValueError) as e:
            push_notifications_total.labels(status="failed").inc()
            raise PushError(f"Unexpected FCM counters: {e}") from e
        push_notifications_total.labels(status="sent").inc(result.sent)
        if result.failed:
            push_notifications_total.labels(status="failed").inc(result.failed)
        logger.debug(f"FCM push: {result.sent} sent, {result.failed} failed")
        return result
