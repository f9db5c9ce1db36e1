from __future__ import annotations

"""Rate provider abstractions.

Both providers are stateless request/response: one upstream call per fetch,
no retries, no caching of their own.
"""
from abc import ABC, abstractmethod
from typing import AbstractSet, Any, Callable, Dict, Protocol

from converter.models.currency import CryptoAsset
from converter.models.rates import CryptoRateSnapshot, FiatRate


class SupportsFetchJson(Protocol):
    def __call__(self, url: str, *, headers: Any = None, timeout: float = 5.0) -> Dict[str, Any]: ...


class FiatRateProvider(ABC):
    @abstractmethod
    def fetch_fiat_rate(self) -> FiatRate:
        """Return the latest USD/MYR snapshot or raise UpstreamError."""
        raise NotImplementedError


class CryptoRateProvider(ABC):
    @abstractmethod
    def fetch_crypto_rates(
        self, asset_ids: AbstractSet[CryptoAsset], usd_to_myr_rate: float
    ) -> CryptoRateSnapshot:
        """Return USD and derived MYR prices keyed by feed id."""
        raise NotImplementedError


Clock = Callable[[], float]
