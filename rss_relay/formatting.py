"""Rendering of feed entries into Telegram messages."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from .models import FeedEntry, FeedSource
from .templating import get_environment

logger = logging.getLogger(__name__)

# Telegram parse mode matching the markup produced by templates/post.html.j2.
PARSE_MODE = "HTML"

DEFAULT_MAX_DESCRIPTION_LENGTH = 3000


def strip_html(raw_value: str) -> str:
    """Return text content extracted from HTML fragments."""
    if not raw_value:
        return ""
    soup = BeautifulSoup(raw_value, "html.parser")
    text = soup.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+([.,;:!?])", r"\1", text)
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def truncate_text(value: str, limit: int = DEFAULT_MAX_DESCRIPTION_LENGTH) -> str:
    """Limit text length to the given number of characters."""
    if len(value) <= limit:
        return value
    logger.debug("Truncating description to %d characters", limit)
    return value[: max(limit - 1, 0)].rstrip() + "…"


def format_post(
    entry: FeedEntry,
    source: FeedSource,
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
) -> str:
    """Render ``entry`` as a message body for the :data:`PARSE_MODE` markup.

    The description is only included for sources configured with
    ``full_content``; empty fields render as empty segments.
    """
    description = ""
    if source.full_content:
        description = truncate_text(
            strip_html(entry.description or ""), limit=max_description_length
        )

    template = get_environment().get_template("post.html.j2")
    return template.render(
        title=entry.title or "",
        description=description,
        link=entry.link or "",
    )
