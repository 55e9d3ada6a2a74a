from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

PricingStrategy = Literal["percent", "fixed", "hybrid"]
JobStatus = Literal["running", "success", "partial", "failed"]
JobItemStatus = Literal["pending", "success", "failed"]


@dataclass
class ExternalProduct:
    external_id: str
    name: str
    description: str = ""
    price: float = 0  # supplier cost, before markup
    image_url: str = ""
    category: str = "Auto"
    supplier_name: str = ""
    stock_quantity: int | None = None
    currency: str | None = None
    url: str | None = None
    price_estimated: bool = False  # True when no price signal was found upstream

    def to_dict(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "image_url": self.image_url,
            "category": self.category,
            "supplier_name": self.supplier_name,
            "stock_quantity": self.stock_quantity,
            "currency": self.currency,
            "url": self.url,
            "price_estimated": self.price_estimated,
        }


@dataclass(frozen=True)
class PricingRules:
    strategy: PricingStrategy
    percent: float | None = None  # 0-100
    fixed: float | None = None
    min_margin: float | None = None
    round_to: float | None = None
    psychological: bool = False

    def to_dict(self) -> dict[str, Any]:
        # Same camelCase shape the admin client posts; stored as the job snapshot.
        return {
            "strategy": self.strategy,
            "percent": self.percent,
            "fixed": self.fixed,
            "minMargin": self.min_margin,
            "roundTo": self.round_to,
            "psychological": self.psychological,
        }


@dataclass
class ImportJob:
    id: str
    supplier: str
    status: JobStatus = "running"
    user_id: str | None = None
    pricing_rules: dict[str, Any] | None = None
    success_count: int = 0
    failed_count: int = 0
    created_at: datetime | None = None
    finished_at: datetime | None = None


@dataclass
class ItemOutcome:
    """Result of running one candidate through the per-item pipeline."""

    external_id: str
    ok: bool
    product_id: str | None = None
    error: str | None = None
    error_kind: str | None = None

    @classmethod
    def success(cls, external_id: str, product_id: str | None) -> "ItemOutcome":
        return cls(external_id=external_id, ok=True, product_id=product_id)

    @classmethod
    def failure(cls, external_id: str, exc: Exception) -> "ItemOutcome":
        return cls(
            external_id=external_id,
            ok=False,
            error=str(exc) or "Failed",
            error_kind=type(exc).__name__,
        )


@dataclass
class ImportedProduct:
    """A catalog row created from an external product (single-URL mode)."""

    product: ExternalProduct
    product_id: str | None
    final_price: int
    image_url: str
    provider: str


@dataclass
class BatchResult:
    job_id: str
    success: int
    failed: int
    status: JobStatus
    outcomes: list[ItemOutcome] = field(default_factory=list)


__all__ = [
    "BatchResult",
    "ExternalProduct",
    "ImportJob",
    "ImportedProduct",
    "ItemOutcome",
    "JobItemStatus",
    "JobStatus",
    "PricingRules",
    "PricingStrategy",
]
