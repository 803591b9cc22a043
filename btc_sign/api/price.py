"""REST endpoints read by the display device.

Paths:
    GET /api/btc-price  — current snapshot in the device wire format
    GET /api/health     — liveness probe
    GET /api/status     — poller diagnostics

Read-only.  Handlers never touch the history or mutate the snapshot.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from btc_sign.foundation.clock import isoformat_z, utc_now
from btc_sign.services.poller import PricePoller
from btc_sign.store.snapshot_store import SnapshotStore


def create_price_router(snapshots: SnapshotStore, poller: PricePoller | None = None) -> APIRouter:
    """Factory that wires the price endpoints to a concrete SnapshotStore."""

    router = APIRouter(prefix="/api", tags=["price"])

    @router.get("/btc-price")
    async def btc_price() -> dict[str, Any]:
        snapshot = await snapshots.current()
        return snapshot.to_payload()

    @router.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "timestamp": isoformat_z(utc_now())}

    @router.get("/status")
    async def status() -> dict[str, Any]:
        snapshot = await snapshots.current()
        body: dict[str, Any] = {
            "snapshot_version": snapshots.version,
            "last_update": isoformat_z(snapshot.last_update) if snapshot.last_update else None,
        }
        if poller is not None:
            body.update({
                "poller_state": poller.state.value,
                "poller_running": poller.is_running,
                "history_size": poller.history_size,
                "reference_price": poller.reference,
                **poller.stats.to_dict(),
            })
        return body

    return router
