import pytest
from fastapi.testclient import TestClient

from converter.core.config import Settings
from converter.main import create_app
from converter.models.rates import CryptoQuote, FiatRate, FiatRateSnapshot
from converter.routers.deps import get_crypto_provider, get_fiat_provider
from converter.services.http_client import UpstreamError
from converter.services.rates.base import CryptoRateProvider, FiatRateProvider

BNM_PAYLOAD = {
    "data": [
        {
            "currency_code": "SGD",
            "unit": 1,
            "rate": {
                "date": "2024-05-02",
                "buying_rate": 3.41,
                "selling_rate": 3.49,
                "middle_rate": 3.45,
            },
        },
        {
            "currency_code": "USD",
            "unit": 1,
            "rate": {
                "date": "2024-05-02",
                "buying_rate": 4.6,
                "selling_rate": 4.7,
                "middle_rate": 4.65,
            },
        },
    ],
    "meta": {
        "quote": "rm",
        "session": "0900",
        "last_updated": "2024-05-02 09:05:00",
        "total_result": 2,
    },
}


def make_fiat_snapshot(middle_rate: float = 4.65) -> FiatRateSnapshot:
    return FiatRateSnapshot(
        currency_code="USD",
        unit=1,
        date="2024-05-02",
        buying_rate=round(middle_rate - 0.05, 4),
        selling_rate=round(middle_rate + 0.05, 4),
        middle_rate=middle_rate,
    )


def make_crypto_snapshot(rate: float = 4.65, **usd_prices: float):
    prices = usd_prices or {"bitcoin": 65000.0, "ethereum": 3200.0, "solana": 150.0}
    return {
        feed_id: CryptoQuote(usd=usd, myr=usd * rate, last_updated_at=1714640000)
        for feed_id, usd in prices.items()
    }


class FakeFiatProvider(FiatRateProvider):
    def __init__(self, middle_rate: float = 4.65, error: str | None = None):
        self.middle_rate = middle_rate
        self.error = error
        self.calls = 0

    def fetch_fiat_rate(self) -> FiatRate:
        self.calls += 1
        if self.error:
            raise UpstreamError(self.error, status=503)
        return FiatRate(
            snapshot=make_fiat_snapshot(self.middle_rate), meta=BNM_PAYLOAD["meta"]
        )


class FakeCryptoProvider(CryptoRateProvider):
    def __init__(self, error: str | None = None):
        self.error = error
        self.calls = []

    def fetch_crypto_rates(self, asset_ids, usd_to_myr_rate):
        self.calls.append((frozenset(asset_ids), usd_to_myr_rate))
        if self.error:
            raise UpstreamError(self.error, status=429)
        snapshot = make_crypto_snapshot(usd_to_myr_rate)
        return {k: v for k, v in snapshot.items() if any(a.feed_id == k for a in asset_ids)}


@pytest.fixture
def settings():
    return Settings(_env_file=None, debug=False)


@pytest.fixture
def fiat_provider():
    return FakeFiatProvider()


@pytest.fixture
def crypto_provider():
    return FakeCryptoProvider()


@pytest.fixture
def app(settings):
    return create_app(settings_override=settings)


@pytest.fixture
def client(app, fiat_provider, crypto_provider):
    app.dependency_overrides[get_fiat_provider] = lambda: fiat_provider
    app.dependency_overrides[get_crypto_provider] = lambda: crypto_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def raw_client(app):
    """Client wired to the real providers (patch urllib to fake upstreams)."""
    return TestClient(app)
