"""Push notification client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import Dict, Any, Optional
from household_ledger.config import settings
from household_ledger.domain.exceptions import NotificationDeliveryError
from household_ledger.infrastructure.observability.metrics import push_latency_histogram, push_failure_counter

PUSH_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


def is_push_token(token: Optional[str]) -> bool:
    return bool(token) and token.startswith(PUSH_TOKEN_PREFIXES) and token.endswith("]")


class PushNotificationClient:
    """Client for the Expo push notification service"""

    def __init__(
        self,
        push_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        timeout: float | None = None,
    ):
        self.push_url = push_url or settings.push_api_url
        self.max_retries = max_retries if max_retries is not None else settings.push_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.push_backoff_base
        self.timeout = timeout or settings.http_timeout_seconds

    async def send(
        self,
        token: Optional[str],
        title: str,
        body: str,
        data: Dict[str, Any] | None = None,
    ) -> bool:
        """
        Send a single push notification with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s (base * 2^attempt)
        - Retries on 5xx errors and network failures
        - Tracks latency histogram and failure counter

        Returns:
            False without any network call when the token is missing or malformed,
            True once the push service accepts the message

        Raises:
            NotificationDeliveryError: When the service reports an error ticket or
                every attempt failed
        """
        if not is_push_token(token):
            logging.info("Skipping push: missing or invalid token")
            return False

        message = {
            "to": token,
            "title": title,
            "body": body,
            "data": data or {},
            "sound": "default",
        }

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with push_latency_histogram.time():
                        response = await client.post(
                            self.push_url,
                            json=message,
                            headers={"Accept": "application/json"},
                        )
                        response.raise_for_status()
                    break

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    push_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise NotificationDeliveryError(f"Push delivery failed after {attempt} attempts: {e}") from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

        ticket = response.json().get("data", {})
        if ticket.get("status") == "error":
            push_failure_counter.inc()
            raise NotificationDeliveryError(f"Push rejected: {ticket.get('message', 'unknown error')}")

        return True
