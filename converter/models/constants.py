"""Domain constants for the converter.

The supported currency set is fixed; see currency.py for the typed view.
"""

from typing import Dict, Tuple

FIAT_CURRENCIES: Tuple[str, ...] = ("USD", "MYR")
CRYPTO_SYMBOLS: Tuple[str, ...] = ("BTC", "ETH", "SOL", "HLQ")

# Symbol -> CoinGecko id
CRYPTO_FEED_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "HLQ": "hyperliquid",
}

# Used by /api/crypto when usdToMyrRate is absent or unparsable
FALLBACK_USD_TO_MYR_RATE: float = 4.65

# Hyperliquid is not always listed upstream; a fixed quote keeps the tile populated
HLQ_FALLBACK_USD: float = 1.25

FIAT_DECIMALS = 2
CRYPTO_DECIMALS = 8
