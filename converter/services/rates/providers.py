from __future__ import annotations

"""Concrete upstream providers.

BnmFiatRateProvider   -> Bank Negara Malaysia public exchange-rate feed (USD record)
CoinGeckoCryptoRateProvider -> CoinGecko simple price API (USD only; MYR derived)
"""
import logging
import time
from typing import AbstractSet, Any, Dict, Optional

from pydantic import ValidationError

from converter.core.config import Settings, get_settings
from converter.models.currency import CryptoAsset
from converter.models.rates import CryptoQuote, CryptoRateSnapshot, FiatRate, FiatRateSnapshot
from converter.services.http_client import UpstreamError, build_url, get_json
from .base import Clock, CryptoRateProvider, FiatRateProvider, SupportsFetchJson

logger = logging.getLogger("converter.rates")

BNM_ACCEPT = "application/vnd.BNM.API.v1+json"


class BnmFiatRateProvider(FiatRateProvider):
    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetch_json: SupportsFetchJson = get_json,
        currency_code: str = "USD",
    ):
        self._settings = settings or get_settings()
        self._fetch_json = fetch_json
        self._currency_code = currency_code

    def _url(self) -> str:
        return build_url(
            str(self._settings.bnm_api_url),
            {"session": self._settings.bnm_session, "quote": self._settings.bnm_quote},
        )

    def fetch_fiat_rate(self) -> FiatRate:  # type: ignore[override]
        payload = self._fetch_json(
            self._url(),
            headers={"Accept": BNM_ACCEPT},
            timeout=self._settings.http_timeout_seconds,
        )
        records = payload.get("data")
        if not isinstance(records, list):
            raise UpstreamError("Exchange rate payload has no data list")
        record = next(
            (
                r
                for r in records
                if isinstance(r, dict) and r.get("currency_code") == self._currency_code
            ),
            None,
        )
        if record is None:
            raise UpstreamError(
                f"{self._currency_code} exchange rate not found in the response"
            )
        try:
            snapshot = FiatRateSnapshot.from_bnm(record)
        except ValidationError as e:
            raise UpstreamError(
                f"Malformed {self._currency_code} exchange rate record"
            ) from e
        meta = payload.get("meta")
        return FiatRate(snapshot=snapshot, meta=meta if isinstance(meta, dict) else {})


class CoinGeckoCryptoRateProvider(CryptoRateProvider):
    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetch_json: SupportsFetchJson = get_json,
        clock: Clock = time.time,
    ):
        self._settings = settings or get_settings()
        self._fetch_json = fetch_json
        self._clock = clock

    def _url(self, asset_ids: AbstractSet[CryptoAsset]) -> str:
        ids = ",".join(sorted(a.feed_id for a in asset_ids))
        return build_url(
            str(self._settings.coingecko_api_url),
            {"ids": ids, "vs_currencies": "usd", "include_last_updated_at": "true"},
        )

    def fetch_crypto_rates(  # type: ignore[override]
        self, asset_ids: AbstractSet[CryptoAsset], usd_to_myr_rate: float
    ) -> CryptoRateSnapshot:
        payload = self._fetch_json(
            self._url(asset_ids),
            headers={"Accept": "application/json"},
            timeout=self._settings.http_timeout_seconds,
        )
        snapshot: Dict[str, CryptoQuote] = {}
        for feed_id, entry in payload.items():
            quote = _quote_from_entry(entry, usd_to_myr_rate)
            if quote is None:
                logger.warning("dropping price entry without usd value: %s", feed_id)
                continue
            snapshot[feed_id] = quote

        hlq = CryptoAsset.HLQ
        if hlq in asset_ids and hlq.feed_id not in snapshot:
            logger.info("%s missing upstream; using fallback quote", hlq.feed_id)
            usd = self._settings.hlq_fallback_usd
            snapshot[hlq.feed_id] = CryptoQuote(
                usd=usd, myr=usd * usd_to_myr_rate, last_updated_at=self._clock()
            )
        return snapshot


def _quote_from_entry(entry: Any, usd_to_myr_rate: float) -> Optional[CryptoQuote]:
    if not isinstance(entry, dict):
        return None
    usd = entry.get("usd")
    if not isinstance(usd, (int, float)) or isinstance(usd, bool) or usd <= 0:
        return None
    updated = entry.get("last_updated_at")
    return CryptoQuote(
        usd=usd,
        myr=usd * usd_to_myr_rate,
        last_updated_at=updated if isinstance(updated, (int, float)) else None,
    )
