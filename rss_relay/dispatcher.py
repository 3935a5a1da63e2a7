"""Concurrent fan-out of category pipelines followed by delivery."""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .delivery import Deliverer
from .errors import FetchError
from .feeds import fetch_feed_entries
from .formatting import format_post
from .models import FeedCategory
from .pipeline import Fetcher, Formatter, run_category
from .window import TimeWindow

logger = logging.getLogger(__name__)


@dataclass
class CategoryOutcome:
    """What happened to one category during a run."""

    name: str
    messages: int = 0
    delivered: int = 0
    failed: int = 0
    fetch_errors: List[FetchError] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DispatchSummary:
    outcomes: List[CategoryOutcome] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(outcome.delivered for outcome in self.outcomes)

    @property
    def failed_categories(self) -> List[str]:
        return [outcome.name for outcome in self.outcomes if not outcome.ok]


class Dispatcher:
    """Run every category's pipeline concurrently and deliver each batch.

    All inputs are supplied at construction; nothing is read from module
    state while a run is in progress.
    """

    def __init__(
        self,
        categories: Sequence[FeedCategory],
        deliverer: Deliverer,
        window: TimeWindow,
        max_workers: Optional[int] = None,
        sort_chronologically: bool = False,
        fetch: Fetcher = fetch_feed_entries,
        formatter: Formatter = format_post,
    ) -> None:
        self.categories = tuple(categories)
        self.deliverer = deliverer
        self.window = window
        self.max_workers = max_workers
        self.sort_chronologically = sort_chronologically
        self.fetch = fetch
        self.formatter = formatter

    def _process(self, category: FeedCategory) -> CategoryOutcome:
        result = run_category(
            category,
            self.window,
            fetch=self.fetch,
            formatter=self.formatter,
            sort_chronologically=self.sort_chronologically,
        )
        outcome = CategoryOutcome(
            name=category.name,
            messages=len(result.messages),
            fetch_errors=list(result.errors),
        )
        report = self.deliverer.deliver(result.messages, category.destination)
        outcome.delivered = report.sent
        outcome.failed = report.failed
        return outcome

    def run_all(self) -> DispatchSummary:
        summary = DispatchSummary()
        if not self.categories:
            logger.info("No categories configured; nothing to dispatch.")
            return summary

        workers = self.max_workers or len(self.categories)
        logger.info(
            "Dispatching %d categories with %d workers (window %s to %s)",
            len(self.categories),
            workers,
            self.window.start,
            self.window.end,
        )

        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures: List[concurrent.futures.Future] = [
                executor.submit(self._process, category) for category in self.categories
            ]
            for category, future in zip(self.categories, futures):
                try:
                    outcome = future.result()
                except Exception as exc:  # noqa: BLE001 - isolate failures per category
                    logger.exception("Category '%s' failed", category.name)
                    outcome = CategoryOutcome(name=category.name, error=exc)
                summary.outcomes.append(outcome)

        return summary
