import json
import logging
import urllib.error

from fastapi.testclient import TestClient

from conftest import BNM_PAYLOAD, FakeCryptoProvider, FakeFiatProvider
from converter.models.currency import ALL_ASSETS, CryptoAsset
from converter.routers.deps import get_crypto_provider, get_fiat_provider


class TestExchangeRate:
    def test_success(self, client):
        resp = client.get("/api/exchange-rate")
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"] == BNM_PAYLOAD["data"][1]
        assert body["meta"]["quote"] == "rm"
        assert resp.headers["cache-control"] == "public, max-age=3600"
        assert resp.headers["x-request-id"]

    def test_upstream_failure(self, app):
        app.dependency_overrides[get_fiat_provider] = lambda: FakeFiatProvider(error="x")
        resp = TestClient(app).get("/api/exchange-rate")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch exchange rate data"}

    def test_upstream_503_through_real_provider(self, raw_client, monkeypatch):
        def raise_503(request, timeout=None):
            raise urllib.error.HTTPError(request.full_url, 503, "Unavailable", None, None)

        monkeypatch.setattr("urllib.request.urlopen", raise_503)
        resp = raw_client.get("/api/exchange-rate")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch exchange rate data"}


class TestCrypto:
    def test_defaults(self, client, crypto_provider):
        resp = client.get("/api/crypto")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["bitcoin"]["usd"] == 65000.0
        assert body["data"]["bitcoin"]["myr"] == 65000.0 * 4.65
        assert crypto_provider.calls == [(ALL_ASSETS, 4.65)]
        assert resp.headers["cache-control"] == "no-store"

    def test_rate_and_ids_params(self, client, crypto_provider):
        resp = client.get("/api/crypto", params={"ids": "bitcoin,SOL", "usdToMyrRate": "4.7"})
        assert resp.status_code == 200
        assert set(resp.json()["data"]) == {"bitcoin", "solana"}
        assert crypto_provider.calls == [
            (frozenset({CryptoAsset.BTC, CryptoAsset.SOL}), 4.7)
        ]

    def test_unparsable_rate_falls_back(self, client, crypto_provider):
        for raw in ("abc", "-2", "0", "nan"):
            client.get("/api/crypto", params={"usdToMyrRate": raw})
        assert [rate for _, rate in crypto_provider.calls] == [4.65] * 4

    def test_unknown_ids(self, client):
        resp = client.get("/api/crypto", params={"ids": "bitcoin,dogecoin"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Unsupported crypto ids: dogecoin", "success": False}

    def test_upstream_failure(self, app):
        app.dependency_overrides[get_crypto_provider] = lambda: FakeCryptoProvider(
            error="CoinGecko API error: 429"
        )
        resp = TestClient(app).get("/api/crypto")
        assert resp.status_code == 500
        assert resp.json() == {"error": "CoinGecko API error: 429", "success": False}

    def test_hlq_fallback_through_real_provider(self, raw_client, monkeypatch):
        class Resp:
            status = 200

            def read(self):
                return json.dumps({"bitcoin": {"usd": 65000, "last_updated_at": 1}}).encode()

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

        monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout=None: Resp())
        resp = raw_client.get("/api/crypto", params={"usdToMyrRate": "4.5"})
        data = resp.json()["data"]
        assert data["hyperliquid"]["usd"] == 1.25
        assert data["hyperliquid"]["myr"] == 1.25 * 4.5
        assert "solana" not in data


class TestConvert:
    def test_fiat_pair_skips_crypto_fetch(self, client, crypto_provider):
        resp = client.get("/api/convert", params={"amount": 600, "from": "myr", "to": "usd"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["result"] == 129.03
        assert body["available"] is True
        assert body["from"] == "MYR"
        assert crypto_provider.calls == []

    def test_usd_to_btc(self, client, crypto_provider):
        resp = client.get("/api/convert", params={"amount": 1, "from": "USD", "to": "BTC"})
        assert resp.json()["result"] == 0.00001538
        assert crypto_provider.calls[0][0] == frozenset({CryptoAsset.BTC})

    def test_missing_price_is_blank_not_error(self, client):
        resp = client.get("/api/convert", params={"amount": 1, "from": "HLQ", "to": "USD"})
        body = resp.json()
        assert resp.status_code == 200
        assert body["result"] is None
        assert body["available"] is False
        assert body["reason"]

    def test_fiat_failure(self, app):
        app.dependency_overrides[get_fiat_provider] = lambda: FakeFiatProvider(error="503")
        resp = TestClient(app).get("/api/convert", params={"amount": 1, "from": "MYR", "to": "USD"})
        assert resp.status_code == 500
        assert "Fiat API error" in resp.json()["error"]

    def test_validation(self, client):
        resp = client.get("/api/convert", params={"from": "MYR", "to": "USD"})
        assert resp.status_code == 422
        assert resp.json()["error"] == "validation_error"
        resp = client.get("/api/convert", params={"amount": "inf", "from": "MYR", "to": "USD"})
        assert resp.status_code == 400


class TestPages:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "version": "0.1.0"}

    def test_unknown_route(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_converter_page(self, client):
        resp = client.get("/", params={"value": "600", "from": "myr", "to": "usd"})
        assert resp.status_code == 200
        assert '<output id="converted">129.03</output>' in resp.text
        assert "/?value=600&amp;from=usd&amp;to=myr" in resp.text

    def test_converter_page_fiat_only(self, app, fiat_provider):
        app.dependency_overrides[get_fiat_provider] = lambda: fiat_provider
        app.dependency_overrides[get_crypto_provider] = lambda: FakeCryptoProvider(error="boom")
        resp = TestClient(app).get("/", params={"value": "1", "from": "btc", "to": "usd"})
        assert resp.status_code == 200
        assert "Crypto API error" in resp.text
        assert '<output id="converted"></output>' in resp.text


class TestLargeAmounts:
    def test_convert_endpoint(self, client):
        resp = client.get("/api/convert", params={"amount": "1e27", "from": "usd", "to": "myr"})
        assert resp.status_code == 200
        assert resp.json()["result"] == 1e27 * 4.65

    def test_convert_endpoint_crypto(self, client):
        resp = client.get("/api/convert", params={"amount": "1e27", "from": "usd", "to": "btc"})
        assert resp.status_code == 200
        assert resp.json()["result"] == 1e27 / 65000

    def test_overflow_renders_blank(self, client):
        resp = client.get("/api/convert", params={"amount": "1e308", "from": "usd", "to": "myr"})
        assert resp.status_code == 200
        assert resp.json()["available"] is False

    def test_converter_page(self, client):
        resp = client.get("/", params={"value": "1e27", "from": "usd", "to": "myr"})
        assert resp.status_code == 200


class TestRatePanel:
    def test_rates_and_inverse_shown(self, client):
        text = client.get("/").text
        assert "RM1.000 MYR = $0.2151 USD" in text
        assert '<dd id="buying-rate">4.6</dd>' in text
        assert '<dd id="middle-rate">4.65</dd>' in text
        assert '<dd id="selling-rate">4.7</dd>' in text
        assert "Bank Negara Malaysia &bull; 2024-05-02" in text

    def test_panel_hidden_without_fiat(self, app):
        app.dependency_overrides[get_fiat_provider] = lambda: FakeFiatProvider(error="503")
        text = TestClient(app).get("/").text
        assert "RM1.000 MYR" not in text
        assert "Fiat API error" in text


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


def test_request_end_log_carries_status(client):
    request_logger = logging.getLogger("converter.request")
    handler = _ListHandler()
    previous_level = request_logger.level
    request_logger.addHandler(handler)
    request_logger.setLevel(logging.DEBUG)
    try:
        client.get("/health")
        client.get("/api/crypto", params={"ids": "dogecoin"})
    finally:
        request_logger.removeHandler(handler)
        request_logger.setLevel(previous_level)

    ends = [m for m in handler.messages if m.startswith("request end")]
    assert ends[0].startswith("request end GET /health -> 200")
    assert ends[1].startswith("request end GET /api/crypto -> 400")
