import json
import sys
import os
from fastapi.testclient import TestClient
from converter.main import create_app
from converter.core.config import Settings

"""Smoke script hitting the live BNM and CoinGecko upstreams.

Prints the exchange-rate and crypto payloads plus a few conversions so the
whole refresh path (fiat first, then crypto with the fiat middle rate) can be
eyeballed. Needs network access; not part of the test suite.
"""


def run():
    client = TestClient(create_app(settings_override=Settings(debug=False)))
    out = {}

    fiat = client.get("/api/exchange-rate")
    out["exchange_rate"] = {"status": fiat.status_code, "body": fiat.json()}
    middle = (fiat.json().get("data") or {}).get("rate", {}).get("middle_rate")

    params = {"usdToMyrRate": middle} if middle else {}
    crypto = client.get("/api/crypto", params=params)
    out["crypto"] = {"status": crypto.status_code, "body": crypto.json()}

    out["conversions"] = {}
    for src, dst, amount in (("MYR", "USD", 600), ("USD", "BTC", 1), ("BTC", "ETH", 1)):
        resp = client.get("/api/convert", params={"amount": amount, "from": src, "to": dst})
        out["conversions"][f"{amount} {src}->{dst}"] = resp.json()

    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    sys.path.append(os.getcwd())
    run()
