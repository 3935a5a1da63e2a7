"""Shared data models for rss_relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

Destination = Union[int, str]

_ZERO_VALUES = (datetime.min, datetime(1970, 1, 1))


@dataclass(frozen=True)
class FeedSource:
    """Configuration for a single RSS feed."""

    title: str
    url: str
    full_content: bool = False


@dataclass(frozen=True)
class FeedCategory:
    """A named group of feeds delivered to one channel."""

    name: str
    destination: Destination
    sources: Tuple[FeedSource, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FeedEntry:
    """Simplified RSS feed entry used throughout the app."""

    title: str
    link: str
    description: str = ""
    published: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass(frozen=True)
class OutboundMessage:
    """A formatted post addressed to a delivery destination."""

    destination: Destination
    text: str


def _is_zero(value: datetime) -> bool:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value in _ZERO_VALUES


def effective_timestamp(entry: FeedEntry) -> Optional[datetime]:
    """Return the first usable timestamp of an entry, preferring published."""
    for value in (entry.published, entry.updated):
        if value is not None and not _is_zero(value):
            return value
    return None
