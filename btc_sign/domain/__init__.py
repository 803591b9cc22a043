from btc_sign.domain.enums import Direction, PollerState
from btc_sign.domain.sample import Sample
from btc_sign.domain.snapshot import PriceSnapshot

__all__ = ["Direction", "PollerState", "Sample", "PriceSnapshot"]
