from .entities import (
    BatchResult,
    ExternalProduct,
    ImportedProduct,
    ImportJob,
    ItemOutcome,
    JobItemStatus,
    JobStatus,
    PricingRules,
    PricingStrategy,
)
from .helpers import (
    clean_text,
    normalize_currency,
    normalize_url,
    parse_decimal_money,
)
from .serialization import (
    serialize_batch_result,
    serialize_imported_product,
    serialize_job,
)

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
    "clean_text",
    "normalize_currency",
    "normalize_url",
    "parse_decimal_money",
    "serialize_batch_result",
    "serialize_imported_product",
    "serialize_job",
]
