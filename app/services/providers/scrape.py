"""Best-effort product metadata scraping from arbitrary product pages.

Signals are read in a fixed order: JSON-LD blocks first, then Open Graph and
Twitter meta tags, then ``product:price:*`` meta tags. Each lookup returns
``None`` when it has nothing, and ``first_present`` picks the first hit.
"""

import html as html_lib
import json
import logging
import re
from decimal import ROUND_FLOOR
from typing import Any, Callable

import requests

from app.config import get_settings
from app.errors import FetchError
from app.models import ExternalProduct, clean_text, normalize_currency, normalize_url, parse_decimal_money

from .common import PLACEHOLDER_IMAGE, first_present, http_session, slug_token, stable_digest

logger = logging.getLogger("uvicorn.error")

# Used when a page carries no usable price signal; flagged via price_estimated.
FALLBACK_PRICE = 10000
# Stock cannot be read from a public page.
PLACEHOLDER_STOCK = 50
DEFAULT_CATEGORY = "Auto"

_JSON_LD_SCRIPT_RE = re.compile(
    r'<script[^>]+type=["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    re.I | re.S,
)
_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.I)
_META_ATTR_RE = re.compile(r'([a-zA-Z_:-]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')


def extract_json_ld(html: str) -> list[Any]:
    """Parse every JSON-LD block; malformed blocks are skipped."""
    items: list[Any] = []
    for block in _JSON_LD_SCRIPT_RE.findall(html or ""):
        text = block.strip()
        if not text:
            continue
        try:
            parsed = json.loads(text)
        except ValueError:
            continue
        if isinstance(parsed, list):
            items.extend(parsed)
        else:
            items.append(parsed)
    return items


def _product_nodes(data: Any) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    if isinstance(data, dict):
        node_type = data.get("@type")
        if node_type == "Product" or (isinstance(node_type, list) and "Product" in node_type):
            out.append(data)
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                out.extend(_product_nodes(item))
    elif isinstance(data, list):
        for item in data:
            out.extend(_product_nodes(item))
    return out


def find_first(data: Any, key: str) -> Any:
    """Depth-first search for the first non-null value stored under ``key``."""
    if isinstance(data, list):
        for item in data:
            found = find_first(item, key)
            if found is not None:
                return found
        return None
    if isinstance(data, dict):
        if data.get(key) is not None:
            return data[key]
        for value in data.values():
            found = find_first(value, key)
            if found is not None:
                return found
    return None


def parse_meta_tags(html: str) -> dict[str, str]:
    """Map ``property``/``name`` -> ``content`` for every meta tag (first wins)."""
    tags: dict[str, str] = {}
    for tag in _META_TAG_RE.findall(html or ""):
        attrs: dict[str, str] = {}
        for name, dq_value, sq_value in _META_ATTR_RE.findall(tag):
            attrs[name.lower()] = dq_value if dq_value or not sq_value else sq_value
        key = (attrs.get("property") or attrs.get("name") or "").strip().lower()
        content = attrs.get("content")
        if not key or content is None:
            continue
        tags.setdefault(key, html_lib.unescape(content).strip())
    return tags


def _text(value: Any) -> str | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        return None
    return clean_text(html_lib.unescape(value))


def _image(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    return normalize_url(value)


def _positive_price(value: Any) -> int | None:
    parsed = parse_decimal_money(value)
    if parsed is None or parsed <= 0:
        return None
    return int(parsed.to_integral_value(rounding=ROUND_FLOOR))


class PageSignals:
    """Parsed JSON-LD and meta tags of one page, with lookup helpers."""

    def __init__(self, html: str):
        items = extract_json_ld(html)
        # Product nodes are searched before the rest so that a page-level
        # WebSite/Organization ``name`` does not shadow the product's.
        self.json_ld: list[Any] = _product_nodes(items) + items
        self.meta = parse_meta_tags(html)

    def ld(self, key: str, convert: Callable[[Any], Any] = _text) -> Callable[[], Any]:
        return lambda: convert(find_first(self.json_ld, key))

    def tag(self, name: str, convert: Callable[[Any], Any] = _text) -> Callable[[], Any]:
        return lambda: convert(self.meta.get(name))

    def name(self) -> str | None:
        return first_present([self.ld("name"), self.tag("og:title"), self.tag("twitter:title")])

    def description(self) -> str | None:
        return first_present(
            [
                self.ld("description"),
                self.tag("og:description"),
                self.tag("description"),
                self.tag("twitter:description"),
            ]
        )

    def image(self) -> str | None:
        return first_present(
            [self.ld("image", _image), self.tag("og:image", _image), self.tag("twitter:image", _image)]
        )

    def price(self) -> int | None:
        return first_present(
            [
                self.ld("price", _positive_price),
                self.ld("priceAmount", _positive_price),
                self.tag("product:price:amount", _positive_price),
                self.tag("og:price:amount", _positive_price),
            ]
        )

    def currency(self) -> str | None:
        return normalize_currency(
            first_present(
                [
                    self.ld("priceCurrency"),
                    self.tag("product:price:currency"),
                    self.ld("currency"),
                    self.tag("og:price:currency"),
                ]
            )
        )

    def identifier(self) -> str | None:
        return first_present([self.ld("sku"), self.ld("productID"), self.ld("mpn")])


class HtmlMetadataExtractor:
    def __init__(self, *, user_agent: str | None = None):
        self.user_agent = user_agent or get_settings().scraper_user_agent
        self._http = http_session()

    def fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        }
        try:
            response = self._http.get(url, headers=headers, timeout=self._http.request_timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch product page: {exc}", url=url) from exc
        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Failed to fetch product page ({response.status_code})",
                url=url,
                upstream_status=response.status_code,
            )
        return response.text

    def extract(self, url: str, supplier_label: str) -> ExternalProduct:
        return self.parse(self.fetch_html(url), url=url, supplier_label=supplier_label)

    def parse(self, html: str, *, url: str, supplier_label: str) -> ExternalProduct:
        signals = PageSignals(html)

        price = signals.price()
        price_estimated = price is None
        if price_estimated:
            logger.warning("No price signal found on %s; using fallback price %s", url, FALLBACK_PRICE)
            price = FALLBACK_PRICE

        token = slug_token(signals.identifier()) or stable_digest(url)[:16]
        return ExternalProduct(
            external_id=f"{slug_token(supplier_label) or 'external'}_{token}",
            name=signals.name() or url,
            description=signals.description() or "",
            price=price,
            image_url=signals.image() or PLACEHOLDER_IMAGE,
            category=DEFAULT_CATEGORY,
            supplier_name=supplier_label,
            stock_quantity=PLACEHOLDER_STOCK,
            currency=signals.currency(),
            url=url,
            price_estimated=price_estimated,
        )


__all__ = [
    "DEFAULT_CATEGORY",
    "FALLBACK_PRICE",
    "HtmlMetadataExtractor",
    "PLACEHOLDER_STOCK",
    "PageSignals",
    "extract_json_ld",
    "find_first",
    "parse_meta_tags",
]
