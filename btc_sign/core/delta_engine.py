"""DeltaEngine — 24h reference selection and price change computation.

Design principles:
    1. Pure function: accepts the current sample, the history and the
       previous result, returns a new DeltaResult.
    2. No side effects, no I/O, never mutates the history.
    3. All thresholds are explicit and configurable.

Reference selection:
    - If the oldest retained sample is at least ``min_reference_age`` old
      (23h by default), it becomes the reference, overwriting any prior one.
    - Otherwise the previous reference is kept.  It is sticky and is not
      re-validated as it drifts away from the true 24h mark.
    - Before any sample has aged past the threshold the reference is None.

Delta:
    change         = price - reference
    change_percent = change / reference * 100

    Without a reference, change and change_percent carry over from the
    previous result (0.0 on a cold start).  Prices are always positive, so
    a zero reference is not guarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from btc_sign.domain.sample import Sample
from btc_sign.store.history import PriceHistory


@dataclass(frozen=True)
class ReferencePolicy:
    """Configurable thresholds for reference selection."""

    # Discrete polling rarely yields a sample exactly 24h old, so anything
    # from this age up to the history window is accepted.
    min_reference_age: timedelta = timedelta(hours=23)


@dataclass(frozen=True)
class DeltaResult:
    """Outcome of one delta computation."""

    change: float = 0.0
    change_percent: float = 0.0
    reference: float | None = None

    @property
    def has_reference(self) -> bool:
        return self.reference is not None


class DeltaEngine:
    """Deterministic 24h delta computation.

    The engine holds no state between calls.  The sticky reference travels
    inside the DeltaResult the caller passes back in as *previous*.
    """

    def __init__(self, policy: ReferencePolicy | None = None) -> None:
        self._policy = policy or ReferencePolicy()

    @property
    def policy(self) -> ReferencePolicy:
        return self._policy

    def compute(
        self,
        current: Sample,
        history: PriceHistory,
        previous: DeltaResult | None = None,
    ) -> DeltaResult:
        """Compute the change of *current* against the 24h reference."""
        previous = previous or DeltaResult()
        reference = self.select_reference(current, history, previous.reference)

        if reference is None:
            return DeltaResult(
                change=previous.change,
                change_percent=previous.change_percent,
                reference=None,
            )

        change = current.price - reference
        return DeltaResult(
            change=change,
            change_percent=change / reference * 100,
            reference=reference,
        )

    def select_reference(
        self,
        current: Sample,
        history: PriceHistory,
        previous_reference: float | None,
    ) -> float | None:
        """Return the oldest sample's price if it qualifies, else *previous_reference*."""
        oldest = history.oldest()
        if oldest is not None and current.timestamp - oldest.timestamp >= self._policy.min_reference_age:
            return oldest.price
        return previous_reference
