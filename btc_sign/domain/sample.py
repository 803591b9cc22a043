"""Sample — one timestamped price observation.

A Sample is created by the poller once per successful tick and handed to
the PriceHistory, which owns it from then on.  It is frozen, so sharing
the instance is as safe as copying it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from btc_sign.foundation.clock import ensure_utc


class Sample(BaseModel):
    """An immutable price observation at a point in time."""

    price: float = Field(..., description="Spot price in quote currency")
    timestamp: datetime = Field(..., description="When the poller observed the price (UTC-aware)")

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)
