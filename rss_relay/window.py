"""Trailing time window used to decide which entries are recent enough."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List

from .models import FeedEntry, effective_timestamp

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(hours=24)


def _floor_to_hour(value: datetime) -> datetime:
    return value.replace(minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)`` of acceptable entry timestamps."""

    start: datetime
    end: datetime

    @classmethod
    def trailing(
        cls,
        now: datetime,
        length: timedelta = DEFAULT_WINDOW,
        align_to_hour: bool = False,
    ) -> "TimeWindow":
        """Build the window ending at ``now`` and spanning ``length``.

        With ``align_to_hour`` both bounds are floored to the top of their
        hour, so runs triggered a few minutes late still cover whole hours.
        """
        if length <= timedelta(0):
            raise ValueError("Window length must be positive.")
        start = now - length
        end = now
        if align_to_hour:
            start = _floor_to_hour(start)
            end = _floor_to_hour(end)
        return cls(start=start, end=end)

    def includes(self, entry: FeedEntry) -> bool:
        timestamp = effective_timestamp(entry)
        if timestamp is None:
            return False
        return self.start <= timestamp < self.end


def select_entries(entries: Iterable[FeedEntry], window: TimeWindow) -> List[FeedEntry]:
    """Return the entries falling inside ``window``, keeping input order."""
    selected = []
    for entry in entries:
        if window.includes(entry):
            selected.append(entry)
        else:
            logger.debug(
                "Skipping entry outside window [%s, %s): %s",
                window.start,
                window.end,
                entry.link,
            )
    return selected
