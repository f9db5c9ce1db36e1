"""Converter UI state and its reducer.

State is an immutable value; every user action or fetch outcome produces a new
state through ``reduce``. The converted amount is never stored: it is a
projection of (amount, from, to, fiat, crypto) computed on demand.

Refreshes are tagged with a generation number. ``RefreshStarted`` bumps the
generation; a ``RatesLoaded`` carrying any other generation is stale and
ignored, so a slow response can never overwrite a newer one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Union

from converter.models.currency import CurrencyRef, classify
from converter.models.rates import CryptoRateSnapshot, FiatRateSnapshot
from converter.services.rates.conversion import ConversionOutcome, convert


@dataclass(frozen=True)
class ConverterState:
    amount: float = 600
    from_currency: str = "MYR"
    to_currency: str = "USD"
    fiat: Optional[FiatRateSnapshot] = None
    crypto: Optional[CryptoRateSnapshot] = None
    error: Optional[str] = None
    loading: bool = False
    generation: int = 0

    @property
    def from_ref(self) -> CurrencyRef:
        return classify(self.from_currency)

    @property
    def to_ref(self) -> CurrencyRef:
        return classify(self.to_currency)

    @property
    def converted(self) -> ConversionOutcome:
        return convert(self.amount, self.from_ref, self.to_ref, self.fiat, self.crypto)

    def share_query(self) -> Dict[str, str]:
        """URL parameters that reproduce this conversion (value, from, to)."""
        return {
            "value": _format_amount(self.amount),
            "from": self.from_currency.lower(),
            "to": self.to_currency.lower(),
        }


# Actions -------------------------------------------------------------------


@dataclass(frozen=True)
class SetAmount:
    amount: float


@dataclass(frozen=True)
class SetFromCurrency:
    currency: str


@dataclass(frozen=True)
class SetToCurrency:
    currency: str


@dataclass(frozen=True)
class SwapCurrencies:
    pass


@dataclass(frozen=True)
class RefreshStarted:
    pass


@dataclass(frozen=True)
class RatesLoaded:
    generation: int
    fiat: Optional[FiatRateSnapshot] = None
    crypto: Optional[CryptoRateSnapshot] = None
    error: Optional[str] = None


Action = Union[
    SetAmount, SetFromCurrency, SetToCurrency, SwapCurrencies, RefreshStarted, RatesLoaded
]


def reduce(state: ConverterState, action: Action) -> ConverterState:
    if isinstance(action, SetAmount):
        return replace(state, amount=action.amount)
    if isinstance(action, SetFromCurrency):
        return replace(state, from_currency=action.currency.upper())
    if isinstance(action, SetToCurrency):
        return replace(state, to_currency=action.currency.upper())
    if isinstance(action, SwapCurrencies):
        return replace(
            state, from_currency=state.to_currency, to_currency=state.from_currency
        )
    if isinstance(action, RefreshStarted):
        return replace(state, loading=True, error=None, generation=state.generation + 1)
    if isinstance(action, RatesLoaded):
        if action.generation != state.generation:
            return state
        if action.fiat is None:
            # Fiat failed: nothing new to show, previous snapshots stay
            return replace(state, loading=False, error=action.error)
        # Both slots replaced together, crypto may be None (fiat-only mode)
        return replace(
            state,
            loading=False,
            error=action.error,
            fiat=action.fiat,
            crypto=action.crypto,
        )
    raise TypeError(f"unknown action {action!r}")


def state_from_query(params: Mapping[str, str], defaults: ConverterState) -> ConverterState:
    """Build the initial state from shareable URL parameters.

    Invalid ``value`` is ignored; currency symbols are upper-cased.
    """
    state = defaults
    value = params.get("value")
    if value:
        try:
            amount = float(value)
        except ValueError:
            amount = math.nan
        if math.isfinite(amount):
            state = reduce(state, SetAmount(amount))
    if params.get("from"):
        state = reduce(state, SetFromCurrency(params["from"]))
    if params.get("to"):
        state = reduce(state, SetToCurrency(params["to"]))
    return state


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))
