import hashlib
import re
from typing import Any, Iterable

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.config import get_settings
from app.models import ExternalProduct

PLACEHOLDER_IMAGE = "/placeholder.svg?height=420&width=420&query=product"
_SEARCH_RESULT_CAP = 10


def http_session(timeout: int | None = None) -> requests.Session:
    s = requests.Session()
    retries = Retry(
        total=3,
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "POST"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    # store desired default timeout on the session for convenience
    s.request_timeout = timeout or get_settings().http_timeout  # type: ignore[attr-defined]
    return s


class ProviderAdapter:
    """Uniform supplier contract: ``search`` and ``fetch_by_url``.

    Subclasses set ``key``/``label``/``website`` and may override either
    method. The default ``fetch_by_url`` scrapes page metadata.
    """

    key: str = "generic"
    label: str = "External Supplier"
    website: str | None = None
    currency: str | None = None
    # (min cost, spread) used to shape placeholder search results
    search_price_band: tuple[int, int] = (1500, 10000)

    def __init__(self, extractor=None):
        if extractor is None:
            from .scrape import HtmlMetadataExtractor

            extractor = HtmlMetadataExtractor()
        self.extractor = extractor

    @property
    def description(self) -> str:
        return f"Auto-created supplier for URL imports ({self.label})"

    def fetch_by_url(self, url: str) -> ExternalProduct:
        product = self.extractor.extract(url, self.label)
        if product.currency is None and self.currency:
            product.currency = self.currency
        return product

    def search(self, query: str, limit: int | None = 20) -> list[ExternalProduct]:
        """Placeholder catalog lookup until the partner search API is wired.

        Results are derived from the query text only, so the same query always
        yields the same ``external_id``s and prices.
        """
        cleaned = " ".join(str(query or "").split())
        if not cleaned:
            return []
        if limit is None:
            limit = 20
        count = max(0, min(int(limit), _SEARCH_RESULT_CAP))
        low, spread = self.search_price_band
        token = slug_token(cleaned) or "item"
        results: list[ExternalProduct] = []
        for index in range(count):
            seed = stable_digest(f"{self.key}:{cleaned.lower()}:{index}")
            results.append(
                ExternalProduct(
                    external_id=f"{self.key}_{token}_{seed[:10]}",
                    name=f"{cleaned} {self.label} #{index + 1}",
                    description=f"Search result for {cleaned} from {self.label} (placeholder)",
                    price=low + int(seed[:8], 16) % spread,
                    image_url=f"/placeholder.svg?height=300&width=300&query={token}-{self.key}",
                    category=cleaned,
                    supplier_name=self.label,
                    stock_quantity=5 + int(seed[8:12], 16) % 200,
                    currency=self.currency,
                )
            )
        return results


def stable_digest(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()


def slug_token(value: Any) -> str:
    return re.sub(r"[^a-z0-9]+", "-", str(value or "").lower()).strip("-")


def first_present(candidates: Iterable[Any]) -> Any:
    """Return the first candidate that is neither ``None`` nor empty."""
    for candidate in candidates:
        if callable(candidate):
            candidate = candidate()
        if candidate is None:
            continue
        if isinstance(candidate, (str, list, dict)) and not candidate:
            continue
        return candidate
    return None


def to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "PLACEHOLDER_IMAGE",
    "ProviderAdapter",
    "first_present",
    "http_session",
    "slug_token",
    "stable_digest",
    "to_int",
]
