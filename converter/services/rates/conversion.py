from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

from converter.models.currency import Crypto, CurrencyRef, Fiat, FiatCode
from converter.models.rates import CryptoQuote, CryptoRateSnapshot, FiatRateSnapshot
from converter.services.money import round2, round8

"""Conversion engine.

Pure function over (amount, from, to, fiat snapshot, crypto snapshot).
Fiat-denominated results are rounded to 2 decimals, crypto-denominated results
to 8. Missing data never raises: the result is an Unavailable value which the
UI renders as a blank converted amount.

Same-currency requests are identity conversions. Fiat pairs other than
MYR<->USD (only reachable with unknown symbols) are Unavailable.
"""


@dataclass(frozen=True)
class Unavailable:
    reason: str


ConversionOutcome = Union[float, Unavailable]


def _price(crypto: CryptoRateSnapshot, ref: Crypto) -> Optional[CryptoQuote]:
    return crypto.get(ref.asset.feed_id)


def _fiat_to_fiat(amount: float, src: Fiat, dst: Fiat, fiat: FiatRateSnapshot) -> ConversionOutcome:
    rate = fiat.middle_rate
    if src.code == FiatCode.MYR and dst.code == FiatCode.USD:
        return round2(amount / rate)
    if src.code == FiatCode.USD and dst.code == FiatCode.MYR:
        return round2(amount * rate)
    return Unavailable(f"unsupported fiat pair {src.code}->{dst.code}")


def _crypto_to_fiat(amount: float, quote: CryptoQuote, dst: Fiat) -> ConversionOutcome:
    if dst.code == FiatCode.USD:
        return round2(amount * quote.usd)
    if dst.code == FiatCode.MYR:
        return round2(amount * quote.myr)
    return Unavailable(f"unsupported fiat currency {dst.code}")


def _fiat_to_crypto(amount: float, src: Fiat, quote: CryptoQuote) -> ConversionOutcome:
    if src.code == FiatCode.USD:
        price = quote.usd
    elif src.code == FiatCode.MYR:
        price = quote.myr
    else:
        return Unavailable(f"unsupported fiat currency {src.code}")
    if price == 0:
        return Unavailable("zero price")
    return round8(amount / price)


def convert(
    amount: float,
    from_ref: CurrencyRef,
    to_ref: CurrencyRef,
    fiat: Optional[FiatRateSnapshot],
    crypto: Optional[CryptoRateSnapshot],
) -> ConversionOutcome:
    result = _convert(amount, from_ref, to_ref, fiat, crypto)
    if isinstance(result, float) and not math.isfinite(result):
        return Unavailable("result out of range")
    return result


def _convert(
    amount: float,
    from_ref: CurrencyRef,
    to_ref: CurrencyRef,
    fiat: Optional[FiatRateSnapshot],
    crypto: Optional[CryptoRateSnapshot],
) -> ConversionOutcome:
    if isinstance(from_ref, Fiat) and isinstance(to_ref, Fiat):
        if fiat is None:
            return Unavailable("fiat rate not loaded")
        if from_ref == to_ref:
            if not to_ref.is_known:
                return Unavailable(f"unsupported fiat currency {to_ref.code}")
            return round2(amount)
        if fiat.middle_rate == 0:
            return Unavailable("zero middle rate")
        return _fiat_to_fiat(amount, from_ref, to_ref, fiat)

    if crypto is None:
        return Unavailable("crypto prices not loaded")

    if isinstance(from_ref, Crypto) and isinstance(to_ref, Fiat):
        quote = _price(crypto, from_ref)
        if quote is None:
            return Unavailable(f"no price for {from_ref.symbol}")
        return _crypto_to_fiat(amount, quote, to_ref)

    if isinstance(from_ref, Fiat) and isinstance(to_ref, Crypto):
        quote = _price(crypto, to_ref)
        if quote is None:
            return Unavailable(f"no price for {to_ref.symbol}")
        return _fiat_to_crypto(amount, from_ref, quote)

    # Crypto -> Crypto, through USD
    if from_ref == to_ref:
        return round8(amount)
    src_quote = _price(crypto, from_ref)
    dst_quote = _price(crypto, to_ref)
    if src_quote is None or dst_quote is None:
        missing = from_ref if src_quote is None else to_ref
        return Unavailable(f"no price for {missing.symbol}")
    if dst_quote.usd == 0:
        return Unavailable("zero price")
    usd_value = amount * src_quote.usd
    return round8(usd_value / dst_quote.usd)
