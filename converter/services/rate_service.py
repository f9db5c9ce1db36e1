"""Refresh cycle for the converter (fiat first, then crypto).

Crypto prices are quoted in USD upstream and converted to MYR with the fiat
middle rate, so the crypto fetch can only start once the fiat fetch has
succeeded. The outcome of one cycle is a single ``RatesLoaded`` action, which
lets the reducer replace both snapshots in one step.

Failure policy:
- fiat fetch fails  -> no snapshots, error message set
- crypto fetch fails -> fiat snapshot kept, crypto None (fiat-only mode),
  error message set

Each fetch is attempted once; there are no retries. An empty asset set skips
the crypto fetch entirely (fiat-only pairs).
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Optional

from converter.models.currency import ALL_ASSETS, CryptoAsset
from converter.services.converter_state import RatesLoaded
from converter.services.http_client import UpstreamError
from converter.services.rates.base import CryptoRateProvider, FiatRateProvider

logger = logging.getLogger("converter.refresh")


class RateService:
    def __init__(self, fiat_provider: FiatRateProvider, crypto_provider: CryptoRateProvider):
        self.fiat_provider = fiat_provider
        self.crypto_provider = crypto_provider

    def refresh(
        self, generation: int, assets: Optional[AbstractSet[CryptoAsset]] = None
    ) -> RatesLoaded:
        try:
            fiat = self.fiat_provider.fetch_fiat_rate()
        except UpstreamError as e:
            logger.warning("fiat refresh failed: %s", e)
            return RatesLoaded(generation=generation, error=f"Fiat API error: {e}")

        if assets is None:
            assets = ALL_ASSETS
        if not assets:
            return RatesLoaded(generation=generation, fiat=fiat.snapshot)
        try:
            crypto = self.crypto_provider.fetch_crypto_rates(
                assets, fiat.snapshot.middle_rate
            )
        except UpstreamError as e:
            logger.warning("crypto refresh failed, continuing fiat-only: %s", e)
            return RatesLoaded(
                generation=generation,
                fiat=fiat.snapshot,
                error=f"Crypto API error: {e}",
            )
        return RatesLoaded(generation=generation, fiat=fiat.snapshot, crypto=crypto)

