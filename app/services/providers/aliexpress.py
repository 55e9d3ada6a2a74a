import logging
import re
from decimal import ROUND_FLOOR
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

import requests

from app.config import get_settings
from app.errors import FetchError
from app.models import ExternalProduct, normalize_currency, normalize_url, parse_decimal_money

from .common import PLACEHOLDER_IMAGE, ProviderAdapter, http_session, to_int
from .scrape import DEFAULT_CATEGORY, FALLBACK_PRICE

logger = logging.getLogger("uvicorn.error")

_ALIEXPRESS_ITEM_RE = re.compile(r"/(?:item|i)/(\d+)\.html(?:[/?#]|$)", re.I)
_ALIEXPRESS_X_OBJECT_RE = re.compile(
    r"x_object_id(?:%25)?(?:%3A|%3D|:|=)(\d{12,20})",
    re.I,
)
_RAPIDAPI_HOST = "aliexpress-datahub.p.rapidapi.com"


def extract_item_id(url: str) -> str | None:
    parsed = urlparse(url)
    query = parse_qs(parsed.query)

    for values in query.values():
        for v in values:
            match = _ALIEXPRESS_X_OBJECT_RE.search(v)
            if match:
                return match.group(1)

            decoded = unquote(v)
            match = _ALIEXPRESS_X_OBJECT_RE.search(decoded)
            if match:
                return match.group(1)

    match = _ALIEXPRESS_ITEM_RE.search(parsed.path)
    if match:
        return match.group(1)

    return None


def _first_price(raw: Any) -> int | None:
    if raw is None:
        return None
    # Ranges come through as "12.50 - 19.99"; the low end is the cost.
    text = str(raw).replace("$", "").split(" - ")[0]
    parsed = parse_decimal_money(text)
    if parsed is None or parsed <= 0:
        return None
    return int(parsed.to_integral_value(rounding=ROUND_FLOOR))


def parse_item_detail(resp: dict, item_id: str, *, url: str | None = None, label: str = "AliExpress") -> ExternalProduct:
    result = resp.get("result", {}) if isinstance(resp, dict) else {}
    item = result.get("item", {}) if isinstance(result, dict) else {}

    title = item.get("title") or ""
    if not title:
        raise FetchError("AliExpress item detail has no title.", url=url)

    description = ""
    if isinstance(item.get("description"), dict) and item["description"].get("html"):
        description = item["description"]["html"]

    sku_data = item.get("sku", {}) if isinstance(item.get("sku"), dict) else {}
    sku_def = sku_data.get("def", {}) if isinstance(sku_data.get("def"), dict) else {}
    settings = result.get("settings") if isinstance(result.get("settings"), dict) else {}
    currency = normalize_currency(settings.get("currency")) or "USD"

    price = _first_price(sku_def.get("promotionPrice"))
    if price is None:
        price = _first_price(sku_def.get("price"))

    stock = 0
    for sku in sku_data.get("base", []) or []:
        if not isinstance(sku, dict):
            continue
        stock += max(0, to_int(sku.get("quantity")) or 0)

    image = None
    for raw_img in item.get("images", []) or []:
        image = normalize_url(raw_img)
        if image:
            break

    category = DEFAULT_CATEGORY
    properties = item.get("properties") if isinstance(item.get("properties"), dict) else {}
    for prop in properties.get("list", []) or []:
        if not isinstance(prop, dict):
            continue
        prop_name = str(prop.get("name") or "").strip().lower()
        prop_value = str(prop.get("value") or "").strip()
        if prop_name == "type" and prop_value:
            category = prop_value
            break

    return ExternalProduct(
        external_id=f"aliexpress_{item_id}",
        name=title,
        description=description,
        price=price if price is not None else FALLBACK_PRICE,
        image_url=image or PLACEHOLDER_IMAGE,
        category=category,
        supplier_name=label,
        stock_quantity=stock,
        currency=currency,
        url=url,
        price_estimated=price is None,
    )


class AliExpressAdapter(ProviderAdapter):
    key = "aliexpress"
    label = "AliExpress"
    website = "https://aliexpress.com"
    currency = "USD"
    search_price_band = (1500, 10000)

    def __init__(self, extractor=None, *, rapidapi_key: str | None = None):
        super().__init__(extractor)
        self.rapidapi_key = rapidapi_key if rapidapi_key is not None else get_settings().rapidapi_key
        self._http = http_session()

    def _call(self, endpoint: str, item_id: str) -> dict:
        response = self._http.get(
            f"https://{_RAPIDAPI_HOST}{endpoint}",
            headers={
                "X-RapidAPI-Key": self.rapidapi_key,
                "X-RapidAPI-Host": _RAPIDAPI_HOST,
            },
            params={"itemId": item_id},
            timeout=self._http.request_timeout,
        )
        response.raise_for_status()
        return response.json()

    def _fetch_from_api(self, url: str, item_id: str) -> ExternalProduct:
        resp = self._call("/item_detail_6", item_id)
        result = resp.get("result", {}) if isinstance(resp, dict) else {}
        item = result.get("item", {}) if isinstance(result, dict) else {}

        if not item or not item.get("title"):
            try:
                fallback_resp = self._call("/item_detail_2", item_id)
            except (requests.RequestException, ValueError) as exc:
                logger.debug("AliExpress item_detail_2 fallback failed for %s: %s", item_id, exc)
            else:
                fallback_result = fallback_resp.get("result", {}) if isinstance(fallback_resp, dict) else {}
                fallback_item = fallback_result.get("item", {}) if isinstance(fallback_result, dict) else {}
                if fallback_item and fallback_item.get("title"):
                    resp = fallback_resp

        return parse_item_detail(resp, item_id, url=url, label=self.label)

    def fetch_by_url(self, url: str) -> ExternalProduct:
        item_id = extract_item_id(url)
        if item_id and self.rapidapi_key:
            try:
                return self._fetch_from_api(url, item_id)
            except (requests.RequestException, ValueError, FetchError) as exc:
                logger.warning("AliExpress API lookup failed for %s, scraping page instead: %s", item_id, exc)

        product = super().fetch_by_url(url)
        if item_id:
            product.external_id = f"aliexpress_{item_id}"
        return product


__all__ = ["AliExpressAdapter", "extract_item_id", "parse_item_detail"]
