"""Supplier adapters and the registry that selects them.

The registry is a read-only mapping built once at import time.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlparse

from .alibaba import AlibabaAdapter
from .aliexpress import AliExpressAdapter
from .common import ProviderAdapter
from .jumia import JumiaAdapter
from .scrape import HtmlMetadataExtractor

# First match wins; fragments must not overlap.
_DOMAIN_FRAGMENTS: tuple[tuple[str, str], ...] = (
    ("aliexpress", "aliexpress"),
    ("alibaba", "alibaba"),
    ("jumia", "jumia"),
)


@dataclass(frozen=True)
class ProviderMatch:
    key: str
    adapter: ProviderAdapter


def _build_registry() -> Mapping[str, ProviderAdapter]:
    extractor = HtmlMetadataExtractor()
    adapters: tuple[ProviderAdapter, ...] = (
        AliExpressAdapter(extractor),
        AlibabaAdapter(extractor),
        JumiaAdapter(extractor),
    )
    return MappingProxyType({adapter.key: adapter for adapter in adapters})


REGISTRY: Mapping[str, ProviderAdapter] = _build_registry()


def get_adapter_by_key(key: str) -> ProviderAdapter:
    """Direct lookup; callers validate ``key`` first (KeyError otherwise)."""
    return REGISTRY[key]


def list_providers() -> list[str]:
    return list(REGISTRY.keys())


def detect_provider_from_url(url: str) -> ProviderMatch | None:
    try:
        host = (urlparse(str(url or "")).hostname or "").lower()
    except ValueError:
        return None
    if not host:
        return None
    for fragment, key in _DOMAIN_FRAGMENTS:
        if fragment in host:
            return ProviderMatch(key=key, adapter=REGISTRY[key])
    return None


__all__ = [
    "AliExpressAdapter",
    "AlibabaAdapter",
    "HtmlMetadataExtractor",
    "JumiaAdapter",
    "ProviderAdapter",
    "ProviderMatch",
    "REGISTRY",
    "detect_provider_from_url",
    "get_adapter_by_key",
    "list_providers",
]
