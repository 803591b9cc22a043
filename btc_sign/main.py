"""btc-sign — rolling 24h BTC price tracker for an LED display.

This is the application entry point.  It wires the HermesPriceSource,
PriceHistory, DeltaEngine, SnapshotStore and PricePoller together and
exposes the snapshot over FastAPI.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from btc_sign.adapters.base import PriceSource
from btc_sign.adapters.hermes import HermesPriceSource
from btc_sign.api.price import create_price_router
from btc_sign.config import Settings, settings
from btc_sign.core.delta_engine import DeltaEngine, ReferencePolicy
from btc_sign.services.poller import PricePoller
from btc_sign.store.history import PriceHistory
from btc_sign.store.snapshot_store import SnapshotStore

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def create_app(config: Settings = settings, source: PriceSource | None = None) -> FastAPI:
    """Build the application.  *source* overrides the Hermes client (tests)."""

    # ── State ────────────────────────────────────────────────────────────
    history = PriceHistory(window=timedelta(hours=config.window_hours))
    snapshots = SnapshotStore()
    engine = DeltaEngine(
        policy=ReferencePolicy(min_reference_age=timedelta(hours=config.reference_min_age_hours)),
    )

    # ── Poller ───────────────────────────────────────────────────────────
    price_source = source or HermesPriceSource(
        feed_id=config.price_feed_id,
        base_url=config.hermes_url,
        timeout=config.fetch_timeout_seconds,
    )
    poller = PricePoller(
        source=price_source,
        history=history,
        snapshots=snapshots,
        engine=engine,
        interval=config.poll_interval_seconds,
        fetch_timeout=config.fetch_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await poller.start()
        logger.info("BTC LED Sign Server running on http://localhost:%d", config.port)
        logger.info("Display endpoint: http://localhost:%d/api/btc-price", config.port)
        try:
            yield
        finally:
            await poller.stop()
            await price_source.aclose()

    # ── App ──────────────────────────────────────────────────────────────
    app = FastAPI(
        title=config.app_name,
        description="Rolling 24h BTC price snapshot for an LED display",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(create_price_router(snapshots, poller))

    app.state.snapshots = snapshots
    app.state.poller = poller
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
