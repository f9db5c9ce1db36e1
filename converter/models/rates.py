from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FiatRateSnapshot(BaseModel):
    """One point-in-time quote of a foreign currency against MYR.

    Upstream (BNM) nests the rate figures under ``rate``; we keep them flat and
    rebuild the nested shape on the way out so API consumers see the upstream
    record unchanged.
    """

    model_config = ConfigDict(frozen=True)

    currency_code: str
    unit: int = Field(1, gt=0)
    date: str
    buying_rate: Optional[float] = None
    selling_rate: Optional[float] = None
    middle_rate: float = Field(..., gt=0)

    @field_validator("currency_code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_bnm(cls, record: Mapping[str, Any]) -> "FiatRateSnapshot":
        rate = record.get("rate") or {}
        return cls(
            currency_code=record.get("currency_code"),
            unit=record.get("unit", 1),
            date=rate.get("date"),
            buying_rate=rate.get("buying_rate"),
            selling_rate=rate.get("selling_rate"),
            middle_rate=rate.get("middle_rate"),
        )

    def to_bnm(self) -> Dict[str, Any]:
        return {
            "currency_code": self.currency_code,
            "unit": self.unit,
            "rate": {
                "date": self.date,
                "buying_rate": self.buying_rate,
                "selling_rate": self.selling_rate,
                "middle_rate": self.middle_rate,
            },
        }


class FiatRate(BaseModel):
    """Snapshot plus the upstream ``meta`` block (quote, session, last_updated)."""

    model_config = ConfigDict(frozen=True)

    snapshot: FiatRateSnapshot
    meta: Dict[str, Any] = Field(default_factory=dict)


class CryptoQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    usd: float = Field(..., gt=0)
    myr: float = Field(..., gt=0)
    last_updated_at: Optional[float] = None


# Keyed by price-feed id (bitcoin, ethereum, ...)
CryptoRateSnapshot = Mapping[str, CryptoQuote]


def crypto_snapshot_payload(snapshot: CryptoRateSnapshot) -> Dict[str, Dict[str, Any]]:
    return {
        feed_id: quote.model_dump(exclude_none=True)
        for feed_id, quote in snapshot.items()
    }
