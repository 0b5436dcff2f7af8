# Central pricing + calculation shared by the form, the checkout and the quote API

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from fractions import Fraction
from typing import Iterable, Optional

DEFAULT_FEE_RATE = 0.30


class QuoteError(ValueError):
    """Raised when a quote cannot be computed from the given input."""


@dataclass(frozen=True)
class Tier:
    threshold: int
    price: int
    discount_label: Optional[str] = None


# Flat Rupiah prices for the quick-select presets
DEFAULT_TIERS = (
    Tier(70, 10000),
    Tier(100, 12500),
    Tier(200, 28600),
    Tier(400, 57100),
    Tier(700, 100000),
    Tier(1000, 125000),
)


@dataclass(frozen=True)
class PriceQuote:
    net_amount: int
    fee_rate: Fraction
    gross_amount: int
    fee_amount: int
    unit_price: Fraction
    total_payment: int

    def as_dict(self) -> dict:
        data = asdict(self)
        data["fee_rate"] = float(self.fee_rate)
        data["unit_price"] = float(self.unit_price)
        return data


def _as_fraction(value) -> Fraction:
    # floats go through repr so 0.3 is 3/10, not the nearest binary double
    if isinstance(value, bool):
        raise QuoteError("Rate must be a number")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise QuoteError("Rate must be finite")
        return Fraction(repr(value))
    try:
        return Fraction(value)
    except (TypeError, ValueError, ZeroDivisionError, OverflowError) as exc:
        raise QuoteError(f"Invalid rate: {value!r}") from exc


def _as_whole(value) -> int:
    if isinstance(value, bool):
        raise QuoteError(f"Not a whole number: {value!r}")
    if isinstance(value, int):
        return value
    try:
        frac = Fraction(value)
    except (TypeError, ValueError, ZeroDivisionError, OverflowError) as exc:
        raise QuoteError(f"Not a whole number: {value!r}") from exc
    if frac.denominator != 1:
        raise QuoteError(f"Not a whole number: {value!r}")
    return int(frac)


def _require_amount(net_amount) -> int:
    if isinstance(net_amount, bool) or not isinstance(net_amount, int):
        raise QuoteError("Amount must be a whole number")
    if net_amount <= 0:
        raise QuoteError("Amount must be positive")
    return net_amount


def compute_gross_amount(net_amount: int, fee_rate=DEFAULT_FEE_RATE) -> int:
    """
    Listing price that leaves `net_amount` after the platform keeps `fee_rate`.
    Smallest integer g with g * (1 - fee_rate) >= net_amount.
    """
    net = _require_amount(net_amount)
    rate = _as_fraction(fee_rate)
    if rate < 0:
        raise QuoteError("Fee rate cannot be negative")
    if rate >= 1:
        raise QuoteError("Fee rate must be below 1")
    return math.ceil(Fraction(net) / (1 - rate))


def compute_fee_amount(net_amount: int, gross_amount: int) -> int:
    fee = gross_amount - net_amount
    if fee < 0:
        raise QuoteError("Gross amount is below the net amount")
    return fee


def normalize_tiers(tier_table: Iterable) -> tuple[Tier, ...]:
    """
    Accepts Tier objects, mappings ({"threshold", "price", "discountLabel"})
    or (threshold, price) pairs. Returns tiers sorted by threshold.
    """
    tiers = []
    for row in tier_table or ():
        if isinstance(row, Tier):
            tier = Tier(_as_whole(row.threshold), _as_whole(row.price), row.discount_label)
        elif isinstance(row, dict):
            try:
                tier = Tier(
                    _as_whole(row["threshold"]),
                    _as_whole(row["price"]),
                    row.get("discount_label") or row.get("discountLabel"),
                )
            except KeyError as exc:
                raise QuoteError(f"Invalid tier row: {row!r}") from exc
        else:
            try:
                threshold, price = row
            except (TypeError, ValueError) as exc:
                raise QuoteError(f"Invalid tier row: {row!r}") from exc
            tier = Tier(_as_whole(threshold), _as_whole(price))

        if tier.threshold <= 0 or tier.price <= 0:
            raise QuoteError("Tier thresholds and prices must be positive")
        tiers.append(tier)

    if not tiers:
        raise QuoteError("Tier table is empty")

    tiers.sort(key=lambda t: t.threshold)
    for prev, cur in zip(tiers, tiers[1:]):
        if prev.threshold == cur.threshold:
            raise QuoteError(f"Duplicate tier threshold: {cur.threshold}")
    return tuple(tiers)


def minimum_amount(tier_table=DEFAULT_TIERS) -> int:
    return normalize_tiers(tier_table)[0].threshold


def select_tier(net_amount: int, tier_table=DEFAULT_TIERS) -> Tier:
    net = _require_amount(net_amount)
    tiers = normalize_tiers(tier_table)
    if net < tiers[0].threshold:
        raise QuoteError(f"Minimum {tiers[0].threshold} Robux")

    chosen = tiers[0]
    for tier in tiers:
        if tier.threshold > net:
            break
        chosen = tier
    return chosen


def unit_price_for(net_amount: int, tier_table=DEFAULT_TIERS) -> Fraction:
    tier = select_tier(net_amount, tier_table)
    return Fraction(tier.price, tier.threshold)


def compute_total_payment(net_amount: int, tier_table=DEFAULT_TIERS) -> int:
    """
    Exact tier hits use the flat tier price. Anything else is priced at the
    per-unit rate of the nearest tier at or below the amount, rounded up.
    """
    tier = select_tier(net_amount, tier_table)
    if tier.threshold == net_amount:
        return tier.price
    return math.ceil(net_amount * Fraction(tier.price, tier.threshold))


def build_quote(net_amount: int, fee_rate=DEFAULT_FEE_RATE, tier_table=DEFAULT_TIERS) -> PriceQuote:
    gross = compute_gross_amount(net_amount, fee_rate)
    return PriceQuote(
        net_amount=net_amount,
        fee_rate=_as_fraction(fee_rate),
        gross_amount=gross,
        fee_amount=compute_fee_amount(net_amount, gross),
        unit_price=unit_price_for(net_amount, tier_table),
        total_payment=compute_total_payment(net_amount, tier_table),
    )
