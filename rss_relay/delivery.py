"""Message delivery to Telegram channels with bounded retry."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence

import requests

from .errors import DeliveryError
from .formatting import PARSE_MODE
from .models import Destination, OutboundMessage

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/{method}"


class MessageClient(Protocol):
    def send(self, destination: Destination, text: str, parse_mode: str) -> None:
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """How many times a failed send is retried and how long to wait between attempts."""

    max_retries: int = 3
    delay: float = 3.0
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def immediate(cls, max_retries: int = 3) -> "RetryPolicy":
        return cls(max_retries=max_retries, delay=0.0, sleep=lambda _seconds: None)

    @property
    def attempts(self) -> int:
        return 1 + max(self.max_retries, 0)

    def wait(self) -> None:
        if self.delay > 0:
            self.sleep(self.delay)


class TelegramClient:
    """Minimal Telegram Bot API client for ``sendMessage``."""

    def __init__(
        self,
        token: str,
        session: Optional[requests.Session] = None,
        timeout: float = 20.0,
        disable_preview: bool = False,
    ) -> None:
        self._token = token
        self._session = session or requests.Session()
        self._timeout = timeout
        self._disable_preview = disable_preview

    def send(self, destination: Destination, text: str, parse_mode: str) -> None:
        url = TELEGRAM_API_URL.format(token=self._token, method="sendMessage")
        payload = {
            "chat_id": destination,
            "text": text,
            "disable_web_page_preview": self._disable_preview,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            response = self._session.post(url, json=payload, timeout=self._timeout)
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise DeliveryError(destination, exc) from exc

        if not data.get("ok"):
            description = data.get("description") or f"HTTP {response.status_code}"
            raise DeliveryError(destination, f"Telegram API error: {description}")


class DryRunClient:
    """Client that logs messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: List[OutboundMessage] = []

    def send(self, destination: Destination, text: str, parse_mode: str) -> None:
        logger.info("[DRY RUN] Message for %s:\n%s", destination, text)
        self.sent.append(OutboundMessage(destination=destination, text=text))


@dataclass
class DeliveryReport:
    """Outcome of delivering one batch."""

    destination: Destination
    sent: int = 0
    failed: int = 0
    errors: List[DeliveryError] = field(default_factory=list)


class Deliverer:
    """Send message batches one by one, retrying each according to a policy."""

    def __init__(
        self,
        client: MessageClient,
        policy: Optional[RetryPolicy] = None,
        parse_mode: str = PARSE_MODE,
    ) -> None:
        self.client = client
        self.policy = policy or RetryPolicy()
        self.parse_mode = parse_mode

    def deliver(
        self, batch: Sequence[OutboundMessage], destination: Destination
    ) -> DeliveryReport:
        report = DeliveryReport(destination=destination)
        if not batch:
            logger.debug("Nothing to deliver to %s", destination)
            return report

        logger.info("Delivering %d messages to %s", len(batch), destination)
        for message in batch:
            error = self._send_with_retry(message.text, destination)
            if error is None:
                report.sent += 1
            else:
                logger.error(
                    "Giving up on message for %s after %d attempts: %s",
                    destination,
                    self.policy.attempts,
                    error.cause,
                )
                report.failed += 1
                report.errors.append(error)

        logger.info(
            "Delivered %d/%d messages to %s", report.sent, len(batch), destination
        )
        return report

    def _send_with_retry(self, text: str, destination: Destination) -> Optional[DeliveryError]:
        last_error: Optional[DeliveryError] = None
        for attempt in range(1, self.policy.attempts + 1):
            if attempt > 1:
                self.policy.wait()
            try:
                self.client.send(destination, text, self.parse_mode)
                return None
            except DeliveryError as exc:
                last_error = exc
            except Exception as exc:  # noqa: BLE001 - client failures are contained per message
                last_error = DeliveryError(destination, exc)
            logger.warning(
                "Send attempt %d/%d to %s failed: %s",
                attempt,
                self.policy.attempts,
                destination,
                last_error.cause,
            )
        return last_error
