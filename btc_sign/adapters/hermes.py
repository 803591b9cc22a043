"""Pyth Hermes price source.

Calls ``GET /v2/updates/price/latest?ids[]=<feed>&parsed=true`` and maps the
first parsed feed into an OracleReading.  Hermes encodes ``price`` and
``conf`` as decimal strings; pydantic coerces them to ints.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from btc_sign.adapters.base import OracleReading, PriceSource, PriceSourceError

logger = logging.getLogger(__name__)

DEFAULT_HERMES_URL = "https://hermes.pyth.network"
BTC_USD_FEED_ID = "0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43"


class _HermesPrice(BaseModel):
    price: int
    conf: int
    expo: int
    publish_time: int


class _HermesParsedFeed(BaseModel):
    id: str
    price: _HermesPrice


class _HermesLatestResponse(BaseModel):
    parsed: list[_HermesParsedFeed] = []


class HermesPriceSource(PriceSource):
    """Fetches one price feed from a Hermes endpoint.

    Args:
        feed_id: Hex feed identifier, with or without the ``0x`` prefix.
        base_url: Hermes service root.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built httpx.AsyncClient (tests inject one with
            a MockTransport).  The source closes only clients it created.
    """

    def __init__(
        self,
        feed_id: str = BTC_USD_FEED_ID,
        base_url: str = DEFAULT_HERMES_URL,
        timeout: float = 4.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not feed_id:
            raise ValueError("feed_id must not be empty")
        self._feed_id = feed_id
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def source_name(self) -> str:
        return "pyth-hermes"

    @property
    def feed_id(self) -> str:
        return self._feed_id

    async def fetch_latest(self) -> OracleReading:
        url = f"{self._base_url}/v2/updates/price/latest"
        params = {"ids[]": self._feed_id, "parsed": "true"}

        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise PriceSourceError(self.source_name, f"request failed: {exc!r}") from exc

        if response.status_code != 200:
            raise PriceSourceError(
                self.source_name,
                f"HTTP {response.status_code}: {response.text[:200]}",
            )

        try:
            body = _HermesLatestResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise PriceSourceError(self.source_name, f"malformed response: {exc}") from exc

        if not body.parsed:
            raise PriceSourceError(self.source_name, "response contained no price feeds")

        feed = body.parsed[0]
        logger.debug("Hermes feed %s published at %d", feed.id, feed.price.publish_time)
        return OracleReading(
            feed_id=feed.id,
            price=feed.price.price,
            conf=feed.price.conf,
            expo=feed.price.expo,
            publish_time=feed.price.publish_time,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
