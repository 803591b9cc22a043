"""Abstract base for price sources.

A price source fetches the latest reading for one fixed feed from an
upstream oracle and normalises it into an OracleReading.

Architectural rules:
    1. fetch_latest() returns a fully valid OracleReading or raises
       PriceSourceError.  Transport failures, bad status codes, malformed
       and empty payloads are all reported the same way.
    2. No source may touch the history or the snapshot store.
    3. No retries.  The poller's schedule is the retry mechanism.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class PriceSourceError(Exception):
    """Raised when a source cannot produce a reading for this tick."""

    def __init__(self, source_name: str, reason: str) -> None:
        self.source_name = source_name
        self.reason = reason
        super().__init__(f"Price source '{source_name}' failed: {reason}")


class OracleReading(BaseModel):
    """A fixed-point price reading as published by the oracle.

    ``price`` and ``conf`` are integers scaled by ``10 ** expo``.
    """

    feed_id: str = Field(..., min_length=1, description="Oracle price feed identifier")
    price: int = Field(..., description="Raw fixed-point price")
    conf: int = Field(..., ge=0, description="Raw fixed-point confidence interval")
    expo: int = Field(..., description="Base-10 exponent applied to price and conf")
    publish_time: int = Field(..., description="Oracle publish time, epoch seconds")

    model_config = {"frozen": True}

    @property
    def scaled_price(self) -> float:
        return self.price * 10.0 ** self.expo

    @property
    def scaled_confidence(self) -> float:
        return self.conf * 10.0 ** self.expo


class PriceSource(ABC):
    """Base class for upstream oracle clients."""

    @abstractmethod
    async def fetch_latest(self) -> OracleReading:
        """Fetch the most recent reading for the configured feed.

        Raises:
            PriceSourceError: If no valid reading could be obtained.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Human-readable name of the upstream oracle."""
        ...

    async def aclose(self) -> None:
        """Release network resources.  Sources without any may ignore this."""
        return None
