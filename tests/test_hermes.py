"""Tests for the Pyth Hermes price source.

Uses httpx.MockTransport so no network access is needed.
"""

from __future__ import annotations

import httpx
import pytest

from btc_sign.adapters.base import OracleReading, PriceSourceError
from btc_sign.adapters.hermes import BTC_USD_FEED_ID, HermesPriceSource


def _hermes_body(**price_overrides) -> dict:
    price = {
        "price": "6512345678900",
        "conf": "3512345678",
        "expo": -8,
        "publish_time": 1767268800,
    }
    price.update(price_overrides)
    return {
        "binary": {"encoding": "hex", "data": ["504e4155"]},
        "parsed": [
            {
                "id": BTC_USD_FEED_ID.removeprefix("0x"),
                "price": price,
                "ema_price": dict(price),
                "metadata": {"slot": 1, "proof_available_time": 1767268801, "prev_publish_time": 1767268799},
            }
        ],
    }


def _source(handler) -> HermesPriceSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HermesPriceSource(base_url="https://hermes.test/", client=client)


class TestHermesPriceSource:
    @pytest.mark.asyncio
    async def test_parses_latest_price(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_hermes_body())

        reading = await _source(handler).fetch_latest()

        assert isinstance(reading, OracleReading)
        assert reading.price == 6512345678900
        assert reading.expo == -8
        assert reading.scaled_price == pytest.approx(65123.456789)
        assert reading.scaled_confidence == pytest.approx(35.12345678)

        request = seen[0]
        assert request.url.path == "/v2/updates/price/latest"
        assert request.url.params["ids[]"] == BTC_USD_FEED_ID
        assert request.url.params["parsed"] == "true"

    @pytest.mark.asyncio
    async def test_non_200_raises(self) -> None:
        source = _source(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(PriceSourceError, match="HTTP 503"):
            await source.fetch_latest()

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PriceSourceError, match="request failed"):
            await _source(handler).fetch_latest()

    @pytest.mark.asyncio
    async def test_empty_parsed_raises(self) -> None:
        source = _source(lambda request: httpx.Response(200, json={"parsed": []}))
        with pytest.raises(PriceSourceError, match="no price feeds"):
            await source.fetch_latest()

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self) -> None:
        source = _source(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(PriceSourceError, match="malformed"):
            await source.fetch_latest()

    @pytest.mark.asyncio
    async def test_schema_mismatch_raises(self) -> None:
        source = _source(lambda request: httpx.Response(200, json=_hermes_body(price="not-a-number")))
        with pytest.raises(PriceSourceError, match="malformed"):
            await source.fetch_latest()

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        source = HermesPriceSource(client=client)
        await source.aclose()
        assert not client.is_closed
        await client.aclose()

    def test_empty_feed_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            HermesPriceSource(feed_id="")


class TestOracleReading:
    def test_positive_exponent_scales_up(self) -> None:
        reading = OracleReading(feed_id="x", price=5, conf=1, expo=2, publish_time=0)
        assert reading.scaled_price == 500.0
        assert reading.scaled_confidence == 100.0
