"""Async-safe holder for the current PriceSnapshot.

The poller is the only writer.  Request handlers only read.  An
asyncio.Lock guards the swap, and snapshots are frozen, so a reader always
observes either the previous or the new record in full.
"""

from __future__ import annotations

import asyncio
import logging

from btc_sign.domain.snapshot import PriceSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Single-writer, multi-reader container for the latest snapshot."""

    def __init__(self, initial: PriceSnapshot | None = None) -> None:
        self._lock = asyncio.Lock()
        self._current = initial or PriceSnapshot()
        self._version = 0

    async def publish(self, snapshot: PriceSnapshot) -> int:
        """Replace the current snapshot wholesale.  Returns the new version."""
        async with self._lock:
            self._current = snapshot
            self._version += 1
            logger.debug("Published snapshot v%d (price=%.2f)", self._version, snapshot.price)
            return self._version

    async def current(self) -> PriceSnapshot:
        async with self._lock:
            return self._current

    @property
    def version(self) -> int:
        """Number of snapshots published since startup."""
        return self._version
