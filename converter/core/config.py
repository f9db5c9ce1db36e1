from functools import lru_cache
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from converter.models.constants import (
    FALLBACK_USD_TO_MYR_RATE,
    FIAT_CURRENCIES,
    CRYPTO_SYMBOLS,
    HLQ_FALLBACK_USD,
)


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, BNM_API_URL, FALLBACK_USD_TO_MYR_RATE).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "MYR Currency Converter"
    debug: bool = True
    version: str = "0.1.0"

    # Fiat rates (Bank Negara Malaysia public API)
    bnm_api_url: AnyHttpUrl = "https://api.bnm.gov.my/public/exchange-rate"
    bnm_session: str = "0900"
    bnm_quote: str = "rm"
    fiat_cache_max_age_seconds: int = 3600  # upstream publishes once per session

    # Crypto prices (CoinGecko simple price API)
    coingecko_api_url: AnyHttpUrl = "https://api.coingecko.com/api/v3/simple/price"

    http_timeout_seconds: float = 5.0

    # Fallbacks
    fallback_usd_to_myr_rate: float = FALLBACK_USD_TO_MYR_RATE
    hlq_fallback_usd: float = HLQ_FALLBACK_USD

    # Converter page defaults
    default_amount: float = 600
    default_from: str = "MYR"
    default_to: str = "USD"

    def init_post_load(self) -> None:
        """Normalize and validate derived fields."""
        if self.fallback_usd_to_myr_rate <= 0:
            raise ValueError("fallback_usd_to_myr_rate must be positive")
        if self.hlq_fallback_usd <= 0:
            raise ValueError("hlq_fallback_usd must be positive")
        if self.fiat_cache_max_age_seconds < 0:
            raise ValueError("fiat_cache_max_age_seconds must not be negative")
        self.default_from = self.default_from.upper()
        self.default_to = self.default_to.upper()
        allowed = set(FIAT_CURRENCIES) | set(CRYPTO_SYMBOLS)
        for code in (self.default_from, self.default_to):
            if code not in allowed:
                raise ValueError(
                    f"Unsupported default currency '{code}'. Allowed: {sorted(allowed)}"
                )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
