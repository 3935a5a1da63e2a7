"""High-level orchestration for the rss_relay application."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .delivery import Deliverer, DryRunClient, RetryPolicy, TelegramClient
from .dispatcher import Dispatcher, DispatchSummary
from .feeds import fetch_feed_entries
from .formatting import format_post
from .models import FeedCategory
from .window import TimeWindow

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Runtime options for executing the application."""

    categories: List[FeedCategory] = field(default_factory=list)
    bot_token: Optional[str] = None
    window_hours: float = 24.0
    align_to_hour: bool = False
    sort_chronologically: bool = False
    concurrency: Optional[int] = None
    request_timeout: float = 10.0
    max_description_length: int = 3000
    max_retries: int = 3
    retry_delay: float = 3.0
    disable_preview: bool = False
    dry_run: bool = False
    now: Optional[datetime] = None


@dataclass
class RunResult:
    """Returned data after executing the app."""

    window: TimeWindow
    summary: DispatchSummary
    output_text: str


def _build_client(config: RunConfig):
    if config.dry_run:
        logger.info("Dry run: messages will be logged instead of sent.")
        return DryRunClient()
    if not config.bot_token:
        raise RuntimeError("A bot token is required unless running in dry-run mode.")
    return TelegramClient(config.bot_token, disable_preview=config.disable_preview)


def _render_summary(summary: DispatchSummary) -> str:
    lines = []
    for outcome in summary.outcomes:
        if outcome.ok:
            lines.append(
                f"{outcome.name}: {outcome.messages} selected, {outcome.delivered} delivered, "
                f"{outcome.failed} failed, {len(outcome.fetch_errors)} feed errors"
            )
        else:
            lines.append(f"{outcome.name}: aborted ({outcome.error})")
    return "\n".join(lines)


def execute(config: RunConfig) -> RunResult:
    """Run every configured category once and return a summary."""
    now = config.now or datetime.now(timezone.utc)
    window = TimeWindow.trailing(
        now,
        length=timedelta(hours=config.window_hours),
        align_to_hour=config.align_to_hour,
    )
    logger.info("Selecting entries published between %s and %s", window.start, window.end)

    deliverer = Deliverer(
        _build_client(config),
        RetryPolicy(max_retries=config.max_retries, delay=config.retry_delay),
    )
    dispatcher = Dispatcher(
        config.categories,
        deliverer,
        window,
        max_workers=config.concurrency,
        sort_chronologically=config.sort_chronologically,
        fetch=functools.partial(fetch_feed_entries, timeout=config.request_timeout),
        formatter=functools.partial(
            format_post, max_description_length=config.max_description_length
        ),
    )
    summary = dispatcher.run_all()

    logger.info(
        "Run complete: %d messages delivered across %d categories",
        summary.delivered,
        len(summary.outcomes),
    )
    return RunResult(window=window, summary=summary, output_text=_render_summary(summary))
