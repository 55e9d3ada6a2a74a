from decimal import Decimal, InvalidOperation
import math
import re
from typing import Any

_MONEY_SANITIZE_RE = re.compile(r"[^\d\.\-]")


def parse_decimal_money(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if isinstance(value, int):
        return Decimal(str(value))

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        try:
            parsed = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        return parsed if parsed.is_finite() else None

    if isinstance(value, str):
        cleaned = _MONEY_SANITIZE_RE.sub("", value.strip().replace(",", ""))
        if cleaned in {"", "-", ".", "-."}:
            return None
        try:
            parsed = Decimal(cleaned)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None

    return None


def normalize_currency(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().upper()
    return normalized or None


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_url(value: Any) -> str | None:
    text = clean_text(value) if isinstance(value, str) else None
    if not text:
        return None
    if text.startswith("//"):
        return f"https:{text}"
    return text


__all__ = [
    "clean_text",
    "normalize_currency",
    "normalize_url",
    "parse_decimal_money",
]
