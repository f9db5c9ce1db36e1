"""Money / rounding helpers.

Centralized so the conversion engine and the API endpoints use identical
rounding semantics: 2 decimals for fiat amounts, 8 for crypto amounts.

Rounding is half-up on the exact binary value of the float (not its shortest
repr), so 1.005 rounds to 1.0 the same way JavaScript's toFixed does.
"""

from __future__ import annotations
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext

from converter.models.constants import CRYPTO_DECIMALS, FIAT_DECIMALS


def round_to(value: float, places: int) -> float:
    if not math.isfinite(value):
        return value
    exact = Decimal(value)
    with localcontext() as ctx:
        # Exact float expansions can exceed the default 28 digit precision
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        quantum = Decimal(1).scaleb(-places)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))


def round2(value: float) -> float:
    return round_to(value, FIAT_DECIMALS)


def round8(value: float) -> float:
    return round_to(value, CRYPTO_DECIMALS)
