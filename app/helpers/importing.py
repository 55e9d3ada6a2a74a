"""External import helpers shared by the admin routes."""

from __future__ import annotations

import logging

from fastapi import HTTPException

from ..errors import ImportPipelineError, UnsupportedProviderError, ValidationError
from ..models import BatchResult, ExternalProduct, ImportedProduct
from ..schemas import ImportBatchRequest, ImportByUrlRequest, PricingRulesPayload
from ..services.orchestrator import ImportOrchestrator
from ..services.providers import REGISTRY, get_adapter_by_key

logger = logging.getLogger("uvicorn.error")


def _rules(payload: PricingRulesPayload | None):
    return payload.to_rules() if payload is not None else None


def run_import_by_url(orchestrator: ImportOrchestrator, payload: ImportByUrlRequest) -> ImportedProduct:
    url = (payload.url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="Missing url")

    try:
        result = orchestrator.import_by_url(url, _rules(payload.pricing_rules))
    except (ValidationError, UnsupportedProviderError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ImportPipelineError as exc:
        logger.warning("URL import failed for %s: %s", url, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("URL import crashed for %s", url)
        raise HTTPException(status_code=500, detail=f"Import failed: {exc}") from exc

    logger.info("Imported %s from %s as product %s", result.product.external_id, result.provider, result.product_id)
    return result


def run_import_batch(
    orchestrator: ImportOrchestrator,
    payload: ImportBatchRequest,
    *,
    user_id: str | None,
) -> BatchResult:
    if not (payload.supplier_label or "").strip() or payload.products is None:
        raise HTTPException(status_code=400, detail="Missing payload")

    try:
        return orchestrator.import_batch(
            payload.supplier_label,
            payload.products,
            _rules(payload.pricing_rules),
            user_id=user_id,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ImportPipelineError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Batch import crashed for %s", payload.supplier_label)
        raise HTTPException(status_code=500, detail=f"Batch import failed: {exc}") from exc


def run_supplier_search(supplier: str, query: str, limit: int) -> list[ExternalProduct]:
    key = (supplier or "").strip().lower()
    if key not in REGISTRY:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown supplier. Supported suppliers: {', '.join(REGISTRY)}.",
        )
    return get_adapter_by_key(key).search(query, limit)


__all__ = ["run_import_batch", "run_import_by_url", "run_supplier_search"]
