"""Markup rules: supplier cost -> listed catalog price.

``compute_price`` is pure. Arithmetic runs on ``Decimal`` so that percent
markups on round costs land on exact values before flooring.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Any

from ..models import PricingRules, parse_decimal_money

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _non_negative(value: Any) -> Decimal:
    parsed = parse_decimal_money(value)
    if parsed is None or parsed < 0:
        return _ZERO
    return parsed


def _floor_int(value: Decimal) -> int:
    return max(0, int(value.to_integral_value(rounding=ROUND_FLOOR)))


def _margin_for(cost: Decimal, rules: PricingRules) -> Decimal:
    pct = _non_negative(rules.percent) / _HUNDRED
    fixed = _non_negative(rules.fixed)

    if rules.strategy == "percent":
        margin = cost * pct
    elif rules.strategy == "fixed":
        margin = fixed
    elif rules.strategy == "hybrid":
        margin = max(cost * pct, fixed)
    else:
        margin = _ZERO

    min_margin = parse_decimal_money(rules.min_margin)
    if min_margin:
        margin = max(margin, min_margin)
    return margin


def round_to_multiple(price: Decimal, step: Decimal) -> Decimal:
    """Round half-up to the nearest multiple of ``step``."""
    return (price / step).to_integral_value(rounding=ROUND_HALF_UP) * step


def compute_price(cost: Any, rules: PricingRules | None = None) -> int:
    base = parse_decimal_money(cost)
    if base is None:
        base = _ZERO

    if rules is None:
        return _floor_int(base)

    price = base + _margin_for(base, rules)

    step = parse_decimal_money(rules.round_to)
    if step is not None and step > 0:
        price = round_to_multiple(price, step)

    # Applied after rounding: a 150 rounded price becomes 149.
    if rules.psychological:
        price = Decimal(max(0, _floor_int(price) - 1))

    return _floor_int(price)


__all__ = ["compute_price", "round_to_multiple"]
