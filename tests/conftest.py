from datetime import datetime, timezone
from typing import List, Tuple

import pytest

from rss_relay.errors import DeliveryError
from rss_relay.models import FeedEntry


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class RecordingClient:
    """Message client that fails a configured number of times per call sequence."""

    def __init__(self, failures: int = 0, fail_destinations=()):
        self.failures = failures
        self.fail_destinations = set(fail_destinations)
        self.attempts: List[Tuple[object, str, str]] = []
        self.sent: List[Tuple[object, str]] = []

    def send(self, destination, text, parse_mode):
        self.attempts.append((destination, text, parse_mode))
        if destination in self.fail_destinations:
            raise DeliveryError(destination, "chat not found")
        if self.failures > 0:
            self.failures -= 1
            raise DeliveryError(destination, "temporary failure")
        self.sent.append((destination, text))


@pytest.fixture
def recording_client():
    return RecordingClient()


@pytest.fixture
def make_entry():
    def _make(title="Title", link="https://example.com/post", description="", published=None, updated=None):
        return FeedEntry(
            title=title,
            link=link,
            description=description,
            published=published,
            updated=updated,
        )

    return _make
