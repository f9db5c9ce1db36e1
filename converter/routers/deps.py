"""Shared FastAPI dependencies.

Settings come from app.state so create_app(settings_override=...) reaches the
providers; tests swap providers through app.dependency_overrides.
"""

from fastapi import Depends, Request

from converter.core.config import Settings
from converter.services.rate_service import RateService
from converter.services.rates.base import CryptoRateProvider, FiatRateProvider
from converter.services.rates.providers import (
    BnmFiatRateProvider,
    CoinGeckoCryptoRateProvider,
)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_fiat_provider(settings: Settings = Depends(get_app_settings)) -> FiatRateProvider:
    return BnmFiatRateProvider(settings)


def get_crypto_provider(
    settings: Settings = Depends(get_app_settings),
) -> CryptoRateProvider:
    return CoinGeckoCryptoRateProvider(settings)


def get_rate_service(
    fiat: FiatRateProvider = Depends(get_fiat_provider),
    crypto: CryptoRateProvider = Depends(get_crypto_provider),
) -> RateService:
    return RateService(fiat, crypto)
