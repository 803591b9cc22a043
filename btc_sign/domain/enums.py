"""Controlled enumerations for the btc-sign domain."""

from __future__ import annotations

from enum import Enum


class Direction(str, Enum):
    """Which way the price moved against the 24h reference."""

    UP = "up"
    DOWN = "down"


class PollerState(str, Enum):
    """Explicit states of the price poller."""

    IDLE = "idle"
    TICKING = "ticking"
