"""PricePoller — the periodic fetch → store → compute → publish driver.

One tick:
    1. Fetch a reading from the PriceSource (bounded by fetch_timeout).
    2. On failure: log, count, leave history and snapshot untouched.
    3. On success: build a Sample at utc_now(), append + prune the history,
       run the DeltaEngine, publish a fresh PriceSnapshot.

Ticks never overlap.  A tick requested while another is in flight is
skipped.  The periodic loop schedules against fixed deadlines, so a slow
tick does not shift the cadence, and missed deadlines are dropped rather
than queued.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from btc_sign.adapters.base import PriceSource, PriceSourceError
from btc_sign.core.delta_engine import DeltaEngine, DeltaResult
from btc_sign.domain.enums import PollerState
from btc_sign.domain.sample import Sample
from btc_sign.domain.snapshot import PriceSnapshot
from btc_sign.foundation.clock import isoformat_z, utc_now
from btc_sign.store.history import PriceHistory
from btc_sign.store.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class PollerStats:
    """Tick counters for observability."""

    __slots__ = (
        "succeeded_ticks",
        "failed_ticks",
        "skipped_ticks",
        "last_error",
        "last_success_at",
    )

    def __init__(self) -> None:
        self.succeeded_ticks: int = 0
        self.failed_ticks: int = 0
        self.skipped_ticks: int = 0
        self.last_error: str | None = None
        self.last_success_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "succeeded_ticks": self.succeeded_ticks,
            "failed_ticks": self.failed_ticks,
            "skipped_ticks": self.skipped_ticks,
            "last_error": self.last_error,
            "last_success_at": isoformat_z(self.last_success_at) if self.last_success_at else None,
        }


class PricePoller:
    """Cancellable periodic task that keeps the snapshot current.

    Args:
        source: Upstream oracle client.
        history: Rolling sample window, owned exclusively by this poller.
        snapshots: Store the new snapshot is published to.
        engine: Delta computation; defaults to the standard 23h policy.
        interval: Seconds between tick deadlines.
        fetch_timeout: Upper bound on one fetch; must be below *interval*.
    """

    def __init__(
        self,
        source: PriceSource,
        history: PriceHistory,
        snapshots: SnapshotStore,
        engine: DeltaEngine | None = None,
        interval: float = 5.0,
        fetch_timeout: float = 4.0,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 < fetch_timeout < interval:
            raise ValueError("fetch_timeout must be positive and shorter than interval")

        self._source = source
        self._history = history
        self._snapshots = snapshots
        self._engine = engine or DeltaEngine()
        self._interval = interval
        self._fetch_timeout = fetch_timeout
        self._tick_lock = asyncio.Lock()
        self._state = PollerState.IDLE
        self._delta = DeltaResult()
        self._stats = PollerStats()
        self._task: asyncio.Task | None = None
        self._started = False

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Run the first tick immediately, then schedule the periodic loop."""
        if self._started:
            raise RuntimeError("poller already started")
        self._started = True
        await self._safe_tick()
        self._task = asyncio.create_task(self._run(), name="price-poller")
        logger.info("Price poller started (interval=%.1fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the periodic loop.  An in-flight tick is abandoned."""
        task, self._task = self._task, None
        self._started = False
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._state = PollerState.IDLE
        logger.info("Price poller stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Tick ─────────────────────────────────────────────────────────────

    async def tick(self) -> bool:
        """Run one tick.  Returns True if a new snapshot was published.

        Returns False when the fetch failed or another tick was in flight.
        """
        if self._tick_lock.locked():
            self._stats.skipped_ticks += 1
            logger.warning("Skipping tick: previous tick still in flight")
            return False

        async with self._tick_lock:
            self._state = PollerState.TICKING
            try:
                return await self._run_tick()
            finally:
                self._state = PollerState.IDLE

    async def _run_tick(self) -> bool:
        try:
            reading = await asyncio.wait_for(self._source.fetch_latest(), timeout=self._fetch_timeout)
        except PriceSourceError as exc:
            self._record_failure(str(exc))
            return False
        except asyncio.TimeoutError:
            self._record_failure(
                f"Price source '{self._source.source_name}' timed out after {self._fetch_timeout:.1f}s"
            )
            return False

        now = utc_now()
        sample = Sample(price=reading.scaled_price, timestamp=now)
        self._history.append(sample)
        self._history.prune(now)

        delta = self._engine.compute(sample, self._history, self._delta)
        snapshot = PriceSnapshot(
            price=sample.price,
            change=delta.change,
            change_percent=delta.change_percent,
            confidence=reading.scaled_confidence,
            last_update=now,
        )
        await self._snapshots.publish(snapshot)
        self._delta = delta

        self._stats.succeeded_ticks += 1
        self._stats.last_success_at = now
        logger.info("BTC Price: $%.2f | Change: %.2f%%", snapshot.price, snapshot.change_percent)
        return True

    def _record_failure(self, reason: str) -> None:
        self._stats.failed_ticks += 1
        self._stats.last_error = reason
        logger.warning("Error fetching BTC price: %s", reason)

    async def _safe_tick(self) -> None:
        try:
            await self.tick()
        except Exception:
            logger.exception("Unexpected error during price tick")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._interval
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            await self._safe_tick()

            deadline += self._interval
            now = loop.time()
            if deadline <= now:
                missed = int((now - deadline) // self._interval) + 1
                deadline += missed * self._interval
                self._stats.skipped_ticks += missed
                logger.warning("Tick overran the interval, skipped %d deadline(s)", missed)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def stats(self) -> PollerStats:
        return self._stats

    @property
    def reference(self) -> float | None:
        """Current sticky 24h reference price, if one has been adopted."""
        return self._delta.reference

    @property
    def history_size(self) -> int:
        return len(self._history)
