from __future__ import annotations

import logging
import math
from typing import FrozenSet, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from converter.core.config import Settings
from converter.models.currency import ALL_ASSETS, Crypto, CryptoAsset
from converter.models.rates import crypto_snapshot_payload
from converter.routers.deps import (
    get_app_settings,
    get_crypto_provider,
    get_fiat_provider,
    get_rate_service,
)
from converter.services.converter_state import ConverterState, RefreshStarted, reduce
from converter.services.http_client import UpstreamError
from converter.services.rate_service import RateService
from converter.services.rates.base import CryptoRateProvider, FiatRateProvider
from converter.services.rates.conversion import Unavailable

"""Rates API.

Endpoints:
    - GET /api/exchange-rate            -> USD record from BNM + upstream meta
    - GET /api/crypto?ids=&usdToMyrRate= -> USD prices with derived MYR values
    - GET /api/convert?amount=&from=&to= -> one refresh cycle + conversion

Upstream failures map to HTTP 500 with an ``error`` message; nothing is retried.
"""

router = APIRouter(prefix="/api", tags=["rates"])

logger = logging.getLogger("converter.api")

DEFAULT_CRYPTO_IDS = ",".join(a.feed_id for a in CryptoAsset)


def parse_usd_to_myr_rate(raw: Optional[str], fallback: float) -> float:
    """Parse the usdToMyrRate query value; absent/unparsable/non-positive -> fallback."""
    if raw is None:
        return fallback
    try:
        value = float(raw)
    except ValueError:
        return fallback
    if not math.isfinite(value) or value <= 0:
        return fallback
    return value


def parse_asset_ids(raw: Optional[str]) -> FrozenSet[CryptoAsset]:
    tokens = [t for t in (raw or DEFAULT_CRYPTO_IDS).split(",") if t.strip()]
    if not tokens:
        return ALL_ASSETS
    assets = set()
    unknown = []
    for token in tokens:
        asset = CryptoAsset.parse(token)
        if asset is None:
            unknown.append(token.strip())
        else:
            assets.add(asset)
    if unknown:
        raise ValueError(f"Unsupported crypto ids: {', '.join(unknown)}")
    return frozenset(assets)


@router.get("/exchange-rate", summary="Latest USD/MYR rate")
def exchange_rate(
    settings: Settings = Depends(get_app_settings),
    provider: FiatRateProvider = Depends(get_fiat_provider),
):
    try:
        fiat = provider.fetch_fiat_rate()
    except UpstreamError:
        logger.exception("Error fetching exchange rate")
        return JSONResponse(
            status_code=500, content={"error": "Failed to fetch exchange rate data"}
        )
    return JSONResponse(
        content={"data": fiat.snapshot.to_bnm(), "meta": fiat.meta},
        headers={"Cache-Control": f"public, max-age={settings.fiat_cache_max_age_seconds}"},
    )


@router.get("/crypto", summary="Crypto prices in USD and MYR")
def crypto_prices(
    ids: Optional[str] = Query(None, description="Comma separated feed ids or symbols"),
    usd_to_myr_rate: Optional[str] = Query(None, alias="usdToMyrRate"),
    settings: Settings = Depends(get_app_settings),
    provider: CryptoRateProvider = Depends(get_crypto_provider),
):
    try:
        assets = parse_asset_ids(ids)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e), "success": False})
    rate = parse_usd_to_myr_rate(usd_to_myr_rate, settings.fallback_usd_to_myr_rate)
    try:
        snapshot = provider.fetch_crypto_rates(assets, rate)
    except UpstreamError as e:
        logger.exception("Error fetching cryptocurrency data")
        return JSONResponse(status_code=500, content={"error": str(e), "success": False})
    return JSONResponse(
        content={"data": crypto_snapshot_payload(snapshot), "success": True},
        headers={"Cache-Control": "no-store"},
    )


@router.get("/convert", summary="Convert an amount using live rates")
def convert_amount(
    amount: float = Query(...),
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    svc: RateService = Depends(get_rate_service),
):
    if not math.isfinite(amount):
        raise HTTPException(status_code=400, detail="amount must be a finite number")
    state = ConverterState(
        amount=amount,
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
    )
    state = reduce(state, RefreshStarted())
    needed = {ref.asset for ref in (state.from_ref, state.to_ref) if isinstance(ref, Crypto)}
    state = reduce(state, svc.refresh(state.generation, frozenset(needed)))
    if state.fiat is None:
        return JSONResponse(status_code=500, content={"error": state.error})

    result = state.converted
    available = not isinstance(result, Unavailable)
    return {
        "amount": state.amount,
        "from": state.from_currency,
        "to": state.to_currency,
        "result": result if available else None,
        "available": available,
        "reason": None if available else result.reason,
        "error": state.error,
    }
