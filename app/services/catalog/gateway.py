"""Backend operations the import pipeline consumes.

Rows live in ``products``, ``categories``, ``suppliers``, ``import_jobs`` and
``import_job_items``; images go to a single storage bucket. Implementations
raise ``PersistenceError`` for any failed write or read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.models import ImportJob, JobItemStatus, JobStatus


class CatalogGateway:
    # -- catalog ---------------------------------------------------------
    def find_product_id_by_external_id(self, external_id: str) -> str | None:
        raise NotImplementedError

    def product_slug_exists(self, slug: str) -> bool:
        raise NotImplementedError

    def insert_product(self, row: dict[str, Any]) -> str | None:
        raise NotImplementedError

    def find_category_id(self, name: str) -> str | None:
        raise NotImplementedError

    def create_category(self, *, name: str, slug: str) -> str | None:
        raise NotImplementedError

    def find_supplier_id(self, name: str) -> str | None:
        raise NotImplementedError

    def create_supplier(
        self,
        *,
        name: str,
        website: str | None = None,
        description: str | None = None,
        status: str = "active",
    ) -> str | None:
        raise NotImplementedError

    # -- jobs ------------------------------------------------------------
    def create_job(
        self,
        *,
        supplier: str,
        user_id: str | None,
        pricing_rules: dict[str, Any] | None,
    ) -> ImportJob:
        raise NotImplementedError

    def finish_job(
        self,
        job_id: str,
        *,
        status: JobStatus,
        success_count: int,
        failed_count: int,
        finished_at: datetime,
    ) -> None:
        raise NotImplementedError

    def create_job_item(
        self,
        job_id: str,
        *,
        external_id: str | None,
        name: str | None,
        raw: dict[str, Any],
    ) -> str | None:
        raise NotImplementedError

    def update_job_item(
        self,
        item_id: str,
        *,
        status: JobItemStatus,
        error: str | None = None,
        product_id: str | None = None,
    ) -> None:
        raise NotImplementedError

    def list_jobs(self, *, offset: int, limit: int) -> tuple[list[ImportJob], int]:
        raise NotImplementedError

    # -- auth ------------------------------------------------------------
    def resolve_user_id(self, access_token: str) -> str | None:
        raise NotImplementedError

    def get_profile_role(self, user_id: str) -> str | None:
        raise NotImplementedError


class MediaStorage:
    def upload(self, path: str, content: bytes, *, content_type: str) -> None:
        raise NotImplementedError

    def public_url(self, path: str) -> str | None:
        """Public URL, or ``None`` when the bucket is not public."""
        raise NotImplementedError

    def signed_url(self, path: str, *, expires_in: int) -> str | None:
        raise NotImplementedError


__all__ = ["CatalogGateway", "MediaStorage"]
