"""Admin external import routes: /api/admin/external-imports/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..config import get_settings
from ..helpers import importing as _importing
from ..helpers.dependencies import AdminUser, get_catalog, get_orchestrator, require_admin
from ..models import serialize_batch_result, serialize_imported_product, serialize_job
from ..schemas import ImportBatchRequest, ImportByUrlRequest
from ..services.catalog import CatalogGateway
from ..services.orchestrator import ImportOrchestrator
from ..services.providers import get_adapter_by_key, list_providers

JOBS_PAGE_SIZE_MIN = 5
JOBS_PAGE_SIZE_MAX = 50

settings = get_settings()
router = APIRouter(prefix="/api/admin/external-imports", tags=["external-imports"])


@router.post("/import-by-url")
def import_by_url(
    payload: ImportByUrlRequest,
    _admin: AdminUser = Depends(require_admin),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
) -> dict:
    result = _importing.run_import_by_url(orchestrator, payload)
    return {"ok": True, "product": serialize_imported_product(result)}


@router.post("/import-batch")
def import_batch(
    payload: ImportBatchRequest,
    admin: AdminUser = Depends(require_admin),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
) -> dict:
    result = _importing.run_import_batch(orchestrator, payload, user_id=admin.id)
    return serialize_batch_result(result, include_outcomes=settings.debug)


@router.get("/jobs")
def list_jobs(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    _admin: AdminUser = Depends(require_admin),
    catalog: CatalogGateway = Depends(get_catalog),
) -> dict:
    page = max(1, page)
    page_size = min(JOBS_PAGE_SIZE_MAX, max(JOBS_PAGE_SIZE_MIN, page_size))
    jobs, total = catalog.list_jobs(offset=(page - 1) * page_size, limit=page_size)
    return {
        "data": [serialize_job(job) for job in jobs],
        "total": total,
        "page": page,
        "pageSize": page_size,
    }


@router.get("/search")
def search_supplier(
    supplier: str = Query(..., description="Provider key: alibaba, aliexpress or jumia"),
    q: str = Query(""),
    limit: int = Query(20, ge=1, le=50),
    _admin: AdminUser = Depends(require_admin),
) -> dict:
    products = _importing.run_supplier_search(supplier, q, limit)
    return {"products": [product.to_dict() for product in products]}


@router.get("/providers")
def providers(_admin: AdminUser = Depends(require_admin)) -> dict:
    return {
        "providers": [
            {
                "key": adapter.key,
                "label": adapter.label,
                "website": adapter.website,
                "currency": adapter.currency,
            }
            for adapter in map(get_adapter_by_key, list_providers())
        ]
    }
