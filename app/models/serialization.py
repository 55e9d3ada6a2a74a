from typing import Any

from .entities import BatchResult, ImportedProduct, ImportJob


def serialize_imported_product(result: ImportedProduct) -> dict[str, Any]:
    payload = result.product.to_dict()
    payload.update(
        price=result.final_price,
        image_url=result.image_url,
        provider=result.provider,
        product_id=result.product_id,
    )
    return payload


def serialize_batch_result(result: BatchResult, *, include_outcomes: bool = False) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ok": True,
        "job_id": result.job_id,
        "success": result.success,
        "failed": result.failed,
    }
    if include_outcomes:
        payload["status"] = result.status
        payload["items"] = [
            {
                "external_id": outcome.external_id,
                "ok": outcome.ok,
                "product_id": outcome.product_id,
                "error": outcome.error,
            }
            for outcome in result.outcomes
        ]
    return payload


def serialize_job(job: ImportJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "user_id": job.user_id,
        "supplier": job.supplier,
        "status": job.status,
        "pricing_rules": job.pricing_rules,
        "success_count": job.success_count,
        "failed_count": job.failed_count,
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "finished_at": job.finished_at.isoformat() if job.finished_at else None,
    }


__all__ = [
    "serialize_batch_result",
    "serialize_imported_product",
    "serialize_job",
]
