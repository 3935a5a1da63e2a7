"""Feed download and parsing helpers."""

from __future__ import annotations

import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser
import requests

from .errors import FetchError
from .models import FeedEntry, FeedSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser UTC timestamps to timezone-aware datetimes."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError, TypeError):
        logger.debug("Ignoring unusable timestamp %r", value)
        return None


def _text(value: Any) -> str:
    if not value:
        return ""
    return str(value).strip()


def _description(entry: Any) -> str:
    summary = getattr(entry, "summary", None)
    if not summary:
        summary_detail = getattr(entry, "summary_detail", None)
        if summary_detail:
            summary = summary_detail.get("value")
    if not summary:
        content = getattr(entry, "content", None)
        if content:
            try:
                summary = content[0].get("value")
            except (TypeError, KeyError, IndexError, AttributeError):
                summary = None
    return _text(summary)


def _to_feed_entry(entry: Any) -> FeedEntry:
    return FeedEntry(
        title=_text(getattr(entry, "title", None)),
        link=_text(getattr(entry, "link", None)),
        description=_description(entry),
        published=to_datetime(getattr(entry, "published_parsed", None)),
        updated=to_datetime(getattr(entry, "updated_parsed", None)),
    )


def fetch_feed_entries(
    source: FeedSource,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> List[FeedEntry]:
    """Fetch and parse the entries of a single feed.

    Every network, decoding or malformed-feed failure is reported as a
    :class:`FetchError` naming the feed, so callers only need to handle one
    exception type per source.
    """
    logger.info("Fetching feed '%s' (%s)", source.title, source.url)
    http = session or requests
    try:
        response = http.get(source.url, timeout=timeout)
        response.raise_for_status()
        content = response.content
    except requests.RequestException as exc:
        raise FetchError(source.title, exc) from exc

    try:
        parsed = feedparser.parse(content)
    except Exception as exc:  # noqa: BLE001 - parser internals vary by input
        raise FetchError(source.title, exc) from exc

    raw_entries = list(getattr(parsed, "entries", None) or [])
    if getattr(parsed, "bozo", False) and not raw_entries:
        cause = getattr(parsed, "bozo_exception", None) or "malformed feed"
        raise FetchError(source.title, cause)

    try:
        entries = [_to_feed_entry(entry) for entry in raw_entries]
    except Exception as exc:  # noqa: BLE001 - malformed entries stay local to this feed
        raise FetchError(source.title, exc) from exc
    logger.info("Collected %d entries from feed '%s'", len(entries), source.title)
    return entries
