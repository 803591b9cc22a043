"""PriceSnapshot — the single published, externally readable price record.

Snapshots are frozen.  Publication replaces the whole object, so a reader
can never see a new price paired with an old ``last_update``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from btc_sign.domain.enums import Direction
from btc_sign.foundation.clock import isoformat_z


class PriceSnapshot(BaseModel):
    """Latest price with its trailing 24h change."""

    price: float = Field(default=0.0, description="Current spot price")
    change: float = Field(default=0.0, description="Absolute change against the 24h reference")
    change_percent: float = Field(default=0.0, description="Percentage change against the 24h reference")
    confidence: float = Field(default=0.0, description="Oracle confidence interval, scaled like price")
    last_update: Optional[datetime] = Field(
        default=None,
        description="When the snapshot was published (None until the first successful tick)",
    )

    model_config = {"frozen": True}

    @property
    def direction(self) -> Direction:
        return Direction.UP if self.change >= 0 else Direction.DOWN

    def to_payload(self) -> dict[str, Any]:
        """Wire format consumed by the display device.

        Numbers are sent as 2-decimal strings so the microcontroller never
        has to format floats itself.
        """
        return {
            "price": f"{self.price:.2f}",
            "change24h": f"{self.change:.2f}",
            "changePercent24h": f"{self.change_percent:.2f}",
            "direction": self.direction.value,
            "lastUpdate": isoformat_z(self.last_update) if self.last_update else None,
        }
