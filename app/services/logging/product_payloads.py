from typing import Any

from babel.core import UnknownLocaleError
from babel.numbers import get_currency_symbol

from ...config import get_settings
from ...models import ExternalProduct

_DEFAULT_DESCRIPTION_LIMITS = {
    "low": 80,
    "medium": 160,
    "high": 240,
}
_SUPPORTED_VERBOSITIES = {"low", "medium", "high", "extrahigh"}


def _truncate_description(value: str | None, *, limit: int) -> str:
    text = str(value or "").strip()
    if len(text) <= limit:
        return text
    return f"{text[:limit].rstrip()}... [truncated]"


def _normalize_verbosity(verbosity: str) -> str:
    normalized = str(verbosity or "").strip().lower()
    if normalized in _SUPPORTED_VERBOSITIES:
        return normalized
    return "medium"


def _format_number(value: float | int | None) -> str:
    if value is None:
        return ""
    return f"{float(value):.2f}".rstrip("0").rstrip(".")


def _format_price(value: Any, currency: str | None) -> str:
    amount: float | None = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        amount = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if stripped:
            try:
                amount = float(stripped)
            except ValueError:
                return stripped
    if amount is None:
        return ""
    number = _format_number(amount)

    symbol = ""
    currency_code = str(currency or "").upper()
    if currency_code:
        try:
            symbol = get_currency_symbol(currency_code, locale="en_US")
        except (UnknownLocaleError, ValueError):
            symbol = currency_code

    if symbol:
        if symbol.isalpha():
            return f"{number} {symbol}"
        return f"{number}{symbol}"
    return number


def external_product_to_loggable(
    product: ExternalProduct,
    *,
    verbosity: str | None = None,
    debug_enabled: bool | None = None,
) -> dict[str, Any] | None:
    settings = get_settings()
    if debug_enabled is None:
        debug_enabled = settings.debug

    if not debug_enabled:
        return None

    resolved_verbosity = verbosity if verbosity is not None else settings.log_verbosity
    level = _normalize_verbosity(resolved_verbosity)
    data = product.to_dict()
    if level == "extrahigh":
        return data

    if level == "high":
        data["description"] = _truncate_description(data.get("description"), limit=_DEFAULT_DESCRIPTION_LIMITS["high"])
        return data

    summary = {
        "name": data.get("name"),
        "supplier_name": data.get("supplier_name"),
        "category": data.get("category"),
        "description": _truncate_description(data.get("description"), limit=_DEFAULT_DESCRIPTION_LIMITS["medium"]),
        "price": _format_price(data.get("price"), data.get("currency")),
        "price_estimated": data.get("price_estimated"),
        "stock_quantity": data.get("stock_quantity"),
        "has_image": bool(str(data.get("image_url") or "").strip()),
    }

    if level == "low":
        return {
            "name": summary.get("name"),
            "supplier_name": summary.get("supplier_name"),
            "price": summary.get("price"),
        }

    return summary
