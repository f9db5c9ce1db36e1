"""Domain models for the currency converter."""

from .constants import (
    FIAT_CURRENCIES,
    CRYPTO_SYMBOLS,
    CRYPTO_FEED_IDS,
)  # re-export
from .currency import (
    ALL_ASSETS,
    Crypto,
    CryptoAsset,
    CurrencyRef,
    Fiat,
    FiatCode,
    classify,
)
from .rates import CryptoQuote, CryptoRateSnapshot, FiatRate, FiatRateSnapshot

__all__ = [
    "FIAT_CURRENCIES",
    "CRYPTO_SYMBOLS",
    "CRYPTO_FEED_IDS",
    "ALL_ASSETS",
    "Crypto",
    "CryptoAsset",
    "CurrencyRef",
    "Fiat",
    "FiatCode",
    "classify",
    "CryptoQuote",
    "CryptoRateSnapshot",
    "FiatRate",
    "FiatRateSnapshot",
]
