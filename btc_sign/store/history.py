"""In-memory rolling price history.

Design notes:
    - Samples are kept in arrival order.  The poller only ever appends the
      most recent reading, so the deque is time-ordered without sorting.
    - prune() is a prefix trim: it pops from the head until the first
      sample that is still inside the window.
    - The history is owned by the poller and is never read by request
      handlers, so it carries no lock of its own.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timedelta

from btc_sign.domain.sample import Sample

logger = logging.getLogger(__name__)


class PriceHistory:
    """Append-only, self-pruning sequence of price samples.

    Args:
        window: Retention period.  After prune(now), every remaining
            sample satisfies ``now - sample.timestamp < window``.
    """

    def __init__(self, window: timedelta = timedelta(hours=24)) -> None:
        if window <= timedelta(0):
            raise ValueError("window must be positive")
        self._window = window
        self._samples: deque[Sample] = deque()

    # ── Mutation ─────────────────────────────────────────────────────────

    def append(self, sample: Sample) -> None:
        """Insert *sample* at the tail."""
        self._samples.append(sample)

    def prune(self, now: datetime) -> int:
        """Drop every leading sample whose age is >= the window.

        Returns the number of samples removed.
        """
        removed = 0
        while self._samples and now - self._samples[0].timestamp >= self._window:
            self._samples.popleft()
            removed += 1
        if removed:
            logger.debug("Pruned %d sample(s), %d retained", removed, len(self._samples))
        return removed

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def window(self) -> timedelta:
        return self._window

    def oldest(self) -> Sample | None:
        """Earliest retained sample, or None if the history is empty."""
        return self._samples[0] if self._samples else None

    def newest(self) -> Sample | None:
        return self._samples[-1] if self._samples else None

    @property
    def samples(self) -> list[Sample]:
        """Read-only view of retained samples, oldest first."""
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)
