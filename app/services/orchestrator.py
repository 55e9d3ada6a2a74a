"""Import external products into the catalog.

Two entry points share one per-item pipeline:

* ``import_by_url`` resolves the supplier from the URL, fetches one product,
  re-hosts its image and inserts it. No job rows are written.
* ``import_batch`` wraps already-fetched candidates in an ``import_jobs`` row,
  records one ``import_job_items`` row per candidate and finalizes the job
  with its counts. A failing candidate never stops the others, including one
  that does not validate as a product.

Writes are independent statements; there is no transaction around a
candidate, so a crash can leave a job ``running`` or an item ``pending``.
"""

from __future__ import annotations

import json
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from slugify import slugify

from ..errors import DuplicateItemError, ImportPipelineError, PersistenceError, UnsupportedProviderError, ValidationError
from ..models import (
    BatchResult,
    ExternalProduct,
    ImportedProduct,
    ItemOutcome,
    JobStatus,
    PricingRules,
)
from ..schemas import ExternalProductPayload
from .catalog import CatalogGateway, MediaStorage
from .logging import external_product_to_loggable
from .media import ImageRehoster
from .pricing import compute_price
from .providers import REGISTRY, ProviderAdapter, detect_provider_from_url
from .providers.scrape import DEFAULT_CATEGORY

logger = logging.getLogger("uvicorn.error")

_SLUG_ATTEMPTS = 50


@dataclass(frozen=True)
class SupplierRef:
    name: str
    website: str | None = None
    description: str | None = None

    @classmethod
    def from_adapter(cls, adapter: ProviderAdapter) -> "SupplierRef":
        return cls(name=adapter.label, website=adapter.website, description=adapter.description)

    @classmethod
    def from_label(cls, label: str) -> "SupplierRef":
        lowered = label.strip().lower()
        for key, adapter in REGISTRY.items():
            if lowered in {key, adapter.label.lower()}:
                return cls(name=label.strip(), website=adapter.website, description=adapter.description)
        return cls(name=label.strip())


def category_slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def batch_status(success: int, failed: int) -> JobStatus:
    if failed == 0:
        return "success"
    if success == 0:
        return "failed"
    return "partial"


def _candidate_snapshot(candidate: Any) -> tuple[str | None, str | None, dict[str, Any]]:
    """``external_id``, ``name`` and ``raw`` for the job item row, taken before validation."""
    if isinstance(candidate, ExternalProduct):
        return candidate.external_id, candidate.name, candidate.to_dict()
    if isinstance(candidate, Mapping):
        raw = dict(candidate)
        external_id = raw.get("external_id")
        name = raw.get("name")
        return (
            str(external_id) if external_id is not None else None,
            str(name) if name is not None else None,
            raw,
        )
    return None, None, {"candidate": candidate}


class _RunCache:
    """Category/supplier ids resolved during one orchestrator call."""

    def __init__(self) -> None:
        self.categories: dict[str, str | None] = {}
        self.suppliers: dict[str, str | None] = {}


class ImportOrchestrator:
    def __init__(
        self,
        catalog: CatalogGateway,
        storage: MediaStorage | None = None,
        *,
        rehoster: ImageRehoster | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.catalog = catalog
        self.rehoster = rehoster or ImageRehoster(storage)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # -- entry points ----------------------------------------------------
    def import_by_url(self, url: str, pricing_rules: PricingRules | None = None) -> ImportedProduct:
        normalized = (url or "").strip()
        if not normalized:
            raise ValidationError("Missing url")

        match = detect_provider_from_url(normalized)
        if match is None:
            raise UnsupportedProviderError(normalized)

        product = match.adapter.fetch_by_url(normalized)
        self._log_candidate(product)
        return self._import_one(
            product,
            supplier=SupplierRef.from_adapter(match.adapter),
            pricing_rules=pricing_rules,
            provider_key=match.key,
            rehost_image=True,
            cache=_RunCache(),
        )

    def import_batch(
        self,
        supplier_label: str,
        products: Iterable[ExternalProduct | Mapping[str, Any]] | None,
        pricing_rules: PricingRules | None = None,
        *,
        user_id: str | None = None,
    ) -> BatchResult:
        label = (supplier_label or "").strip()
        if not label or products is None:
            raise ValidationError("Missing payload")
        candidates = list(products)

        job = self.catalog.create_job(
            supplier=label,
            user_id=user_id,
            pricing_rules=pricing_rules.to_dict() if pricing_rules else None,
        )
        logger.info("Import job %s started: %d candidate(s) from %s", job.id, len(candidates), label)

        supplier = SupplierRef.from_label(label)
        cache = _RunCache()
        outcomes = [
            self._run_batch_item(job.id, candidate, supplier=supplier, pricing_rules=pricing_rules, cache=cache)
            for candidate in candidates
        ]

        success = sum(1 for outcome in outcomes if outcome.ok)
        failed = len(outcomes) - success
        status = batch_status(success, failed)
        self.catalog.finish_job(
            job.id,
            status=status,
            success_count=success,
            failed_count=failed,
            finished_at=self._clock(),
        )
        logger.info("Import job %s finished as %s (%d ok, %d failed)", job.id, status, success, failed)
        return BatchResult(job_id=job.id, success=success, failed=failed, status=status, outcomes=outcomes)

    # -- batch bookkeeping -----------------------------------------------
    def _run_batch_item(
        self,
        job_id: str,
        candidate: ExternalProduct | Mapping[str, Any],
        *,
        supplier: SupplierRef,
        pricing_rules: PricingRules | None,
        cache: _RunCache,
    ) -> ItemOutcome:
        external_id, name, raw = _candidate_snapshot(candidate)
        item_id: str | None = None
        try:
            item_id = self.catalog.create_job_item(job_id, external_id=external_id, name=name, raw=raw)
            product = ExternalProductPayload.parse_candidate(candidate)
            imported = self._import_one(
                product,
                supplier=supplier,
                pricing_rules=pricing_rules,
                provider_key=supplier.name,
                rehost_image=False,
                cache=cache,
            )
            outcome = ItemOutcome.success(product.external_id, imported.product_id)
        except ImportPipelineError as exc:
            logger.warning("Import of %s failed: %s", external_id, exc)
            outcome = ItemOutcome.failure(external_id or "", exc)
        except Exception as exc:
            logger.exception("Unexpected error importing %s", external_id)
            outcome = ItemOutcome.failure(external_id or "", exc)

        self._record_item(item_id, outcome)
        return outcome

    def _record_item(self, item_id: str | None, outcome: ItemOutcome) -> None:
        if item_id is None:
            logger.warning("No job item row for %s; outcome not recorded", outcome.external_id)
            return
        try:
            if outcome.ok:
                self.catalog.update_job_item(item_id, status="success", product_id=outcome.product_id)
            else:
                self.catalog.update_job_item(item_id, status="failed", error=outcome.error)
        except PersistenceError as exc:
            logger.warning("Could not record outcome of job item %s: %s", item_id, exc)

    # -- per-item pipeline -----------------------------------------------
    def _import_one(
        self,
        product: ExternalProduct,
        *,
        supplier: SupplierRef,
        pricing_rules: PricingRules | None,
        provider_key: str,
        rehost_image: bool,
        cache: _RunCache,
    ) -> ImportedProduct:
        if self.catalog.find_product_id_by_external_id(product.external_id):
            raise DuplicateItemError(product.external_id)

        category_id = self._resolve_category(product.category, cache)
        supplier_id = self._resolve_supplier(supplier, cache)

        image_url = product.image_url
        if rehost_image and image_url:
            image_url = self.rehoster.rehost(image_url, provider_key)

        final_price = compute_price(product.price, pricing_rules)
        if product.price_estimated:
            logger.warning(
                "Importing %s with an estimated supplier cost (%s); review its price",
                product.external_id,
                product.price,
            )

        row = {
            "name": product.name,
            "slug": self._unique_product_slug(product.name),
            "description": product.description,
            "price": final_price,
            "image_url": image_url,
            "category_id": category_id,
            "supplier_id": supplier_id,
            "external_id": product.external_id,
            "stock_quantity": product.stock_quantity or 0,
            "is_external": True,
            "status": "active",
        }
        if product.url:
            row["external_url"] = product.url

        product_id = self.catalog.insert_product(row)
        logger.debug("Inserted product %s for %s at price %s", product_id, product.external_id, final_price)
        return ImportedProduct(
            product=product,
            product_id=product_id,
            final_price=final_price,
            image_url=image_url,
            provider=provider_key,
        )

    def _resolve_category(self, label: str | None, cache: _RunCache) -> str | None:
        name = (label or "").strip() or DEFAULT_CATEGORY
        if name in cache.categories:
            return cache.categories[name]
        category_id = self.catalog.find_category_id(name)
        if category_id is None:
            category_id = self.catalog.create_category(name=name, slug=category_slug(name))
            logger.info("Created category %r (%s)", name, category_id)
        cache.categories[name] = category_id
        return category_id

    def _resolve_supplier(self, supplier: SupplierRef, cache: _RunCache) -> str | None:
        if supplier.name in cache.suppliers:
            return cache.suppliers[supplier.name]
        supplier_id = self.catalog.find_supplier_id(supplier.name)
        if supplier_id is None:
            supplier_id = self.catalog.create_supplier(
                name=supplier.name,
                website=supplier.website,
                description=supplier.description,
                status="active",
            )
            logger.info("Created supplier %r (%s)", supplier.name, supplier_id)
        cache.suppliers[supplier.name] = supplier_id
        return supplier_id

    def _unique_product_slug(self, name: str) -> str:
        base = slugify(name or "") or "product"
        slug = base
        for attempt in range(1, _SLUG_ATTEMPTS + 1):
            if not self.catalog.product_slug_exists(slug):
                return slug
            slug = f"{base}-{attempt}"
        return f"{base}-{secrets.token_hex(3)}"

    def _log_candidate(self, product: ExternalProduct) -> None:
        loggable = external_product_to_loggable(product)
        if loggable is not None:
            logger.debug("Fetched external product:\n%s", json.dumps(loggable, ensure_ascii=False, indent=2))


__all__ = [
    "ImportOrchestrator",
    "SupplierRef",
    "batch_status",
    "category_slug",
]
