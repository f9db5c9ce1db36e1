from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .constants import CRYPTO_FEED_IDS, FIAT_CURRENCIES


class FiatCode(str, Enum):
    USD = "USD"
    MYR = "MYR"


class CryptoAsset(str, Enum):
    BTC = "BTC"
    ETH = "ETH"
    SOL = "SOL"
    HLQ = "HLQ"

    @property
    def feed_id(self) -> str:
        """CoinGecko identifier for this asset."""
        return CRYPTO_FEED_IDS[self.value]

    @classmethod
    def from_feed_id(cls, feed_id: str) -> Optional["CryptoAsset"]:
        for asset in cls:
            if asset.feed_id == feed_id:
                return asset
        return None

    @classmethod
    def parse(cls, token: str) -> Optional["CryptoAsset"]:
        """Accept either a symbol (``btc``) or a feed id (``bitcoin``)."""
        token = token.strip()
        if token.upper() in cls.__members__:
            return cls[token.upper()]
        return cls.from_feed_id(token.lower())


ALL_ASSETS = frozenset(CryptoAsset)


@dataclass(frozen=True)
class Fiat:
    # Plain str: unknown symbols are classified as fiat and kept verbatim
    code: str

    @property
    def symbol(self) -> str:
        return self.code

    @property
    def is_known(self) -> bool:
        return self.code in FIAT_CURRENCIES


@dataclass(frozen=True)
class Crypto:
    asset: CryptoAsset

    @property
    def symbol(self) -> str:
        return self.asset.value


CurrencyRef = Union[Fiat, Crypto]


def classify(symbol: str) -> CurrencyRef:
    """Map a currency symbol to its tagged reference; unknown symbols are fiat."""
    code = symbol.strip().upper()
    if code in CryptoAsset.__members__:
        return Crypto(CryptoAsset[code])
    return Fiat(code)
