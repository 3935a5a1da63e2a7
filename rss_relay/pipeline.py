"""Fetch, filter and format the feeds of one category."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Sequence, Tuple

from .errors import FetchError
from .feeds import fetch_feed_entries
from .formatting import format_post
from .models import (
    FeedCategory,
    FeedEntry,
    FeedSource,
    OutboundMessage,
    effective_timestamp,
)
from .window import TimeWindow, select_entries

logger = logging.getLogger(__name__)

Fetcher = Callable[[FeedSource], Sequence[FeedEntry]]
Formatter = Callable[[FeedEntry, FeedSource], str]

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class CategoryResult:
    """Messages produced for a category plus the feeds that failed."""

    category: FeedCategory
    messages: List[OutboundMessage] = field(default_factory=list)
    errors: List[FetchError] = field(default_factory=list)


def run_category(
    category: FeedCategory,
    window: TimeWindow,
    fetch: Fetcher = fetch_feed_entries,
    formatter: Formatter = format_post,
    sort_chronologically: bool = False,
) -> CategoryResult:
    """Build the message batch for ``category``.

    Sources are processed in configuration order. A feed that cannot be
    fetched is logged and recorded on the result; the remaining sources are
    still processed.
    """
    result = CategoryResult(category=category)
    selected: List[Tuple[FeedEntry, OutboundMessage]] = []

    for source in category.sources:
        try:
            entries = fetch(source)
        except FetchError as exc:
            logger.warning("[%s] %s", category.name, exc)
            result.errors.append(exc)
            continue

        if not entries:
            logger.info("[%s] No entries retrieved for feed '%s'", category.name, source.title)
            continue

        recent = select_entries(entries, window)
        logger.info(
            "[%s] Selected %d of %d entries from feed '%s'",
            category.name,
            len(recent),
            len(entries),
            source.title,
        )
        for entry in recent:
            message = OutboundMessage(
                destination=category.destination, text=formatter(entry, source)
            )
            selected.append((entry, message))

    if sort_chronologically:
        selected.sort(key=lambda pair: effective_timestamp(pair[0]) or _OLDEST)

    result.messages = [message for _, message in selected]
    return result
