from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any

import httpx
from supabase import AuthError, Client, PostgrestAPIError, StorageException, create_client

from app.config import get_settings
from app.errors import PersistenceError
from app.models import ImportJob, JobItemStatus, JobStatus

from .gateway import CatalogGateway, MediaStorage

logger = logging.getLogger("uvicorn.error")


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def job_from_row(row: dict[str, Any]) -> ImportJob:
    return ImportJob(
        id=str(row["id"]),
        supplier=row.get("supplier") or "",
        status=row.get("status") or "running",
        user_id=row.get("user_id"),
        pricing_rules=row.get("pricing_rules"),
        success_count=int(row.get("success_count") or 0),
        failed_count=int(row.get("failed_count") or 0),
        created_at=_parse_timestamp(row.get("created_at")),
        finished_at=_parse_timestamp(row.get("finished_at")),
    )


class SupabaseCatalog(CatalogGateway):
    def __init__(self, client: Client):
        self._client = client

    def _first(self, table: str, column: str, value: Any, *, fields: str = "id") -> dict[str, Any] | None:
        try:
            resp = self._client.table(table).select(fields).eq(column, value).limit(1).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"{table} lookup failed: {exc}") from exc
        rows = resp.data or []
        return rows[0] if rows else None

    def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._client.table(table).insert(row).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"{table} insert failed: {exc}") from exc
        rows = resp.data or []
        return rows[0] if rows else {}

    def _update(self, table: str, values: dict[str, Any], *, row_id: str) -> None:
        try:
            self._client.table(table).update(values).eq("id", row_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"{table} update failed: {exc}") from exc

    @staticmethod
    def _id(row: dict[str, Any] | None) -> str | None:
        if not row or row.get("id") is None:
            return None
        return str(row["id"])

    def find_product_id_by_external_id(self, external_id: str) -> str | None:
        return self._id(self._first("products", "external_id", external_id))

    def product_slug_exists(self, slug: str) -> bool:
        return self._first("products", "slug", slug) is not None

    def insert_product(self, row: dict[str, Any]) -> str | None:
        return self._id(self._insert("products", row))

    def find_category_id(self, name: str) -> str | None:
        return self._id(self._first("categories", "name", name))

    def create_category(self, *, name: str, slug: str) -> str | None:
        return self._id(self._insert("categories", {"name": name, "slug": slug}))

    def find_supplier_id(self, name: str) -> str | None:
        return self._id(self._first("suppliers", "name", name))

    def create_supplier(
        self,
        *,
        name: str,
        website: str | None = None,
        description: str | None = None,
        status: str = "active",
    ) -> str | None:
        row: dict[str, Any] = {"name": name, "status": status}
        if website:
            row["website"] = website
        if description:
            row["description"] = description
        return self._id(self._insert("suppliers", row))

    def create_job(
        self,
        *,
        supplier: str,
        user_id: str | None,
        pricing_rules: dict[str, Any] | None,
    ) -> ImportJob:
        row = self._insert(
            "import_jobs",
            {
                "user_id": user_id,
                "supplier": supplier,
                "status": "running",
                "pricing_rules": pricing_rules,
            },
        )
        if not row.get("id"):
            raise PersistenceError("import_jobs insert returned no row")
        return job_from_row(row)

    def finish_job(
        self,
        job_id: str,
        *,
        status: JobStatus,
        success_count: int,
        failed_count: int,
        finished_at: datetime,
    ) -> None:
        self._update(
            "import_jobs",
            {
                "status": status,
                "success_count": success_count,
                "failed_count": failed_count,
                "finished_at": finished_at.isoformat(),
            },
            row_id=job_id,
        )

    def create_job_item(
        self,
        job_id: str,
        *,
        external_id: str | None,
        name: str | None,
        raw: dict[str, Any],
    ) -> str | None:
        row = self._insert(
            "import_job_items",
            {
                "job_id": job_id,
                "external_id": external_id,
                "name": name,
                "status": "pending",
                "raw": raw,
            },
        )
        return self._id(row)

    def update_job_item(
        self,
        item_id: str,
        *,
        status: JobItemStatus,
        error: str | None = None,
        product_id: str | None = None,
    ) -> None:
        values: dict[str, Any] = {"status": status}
        if error is not None:
            values["error"] = error
        if product_id is not None:
            values["product_id"] = product_id
        self._update("import_job_items", values, row_id=item_id)

    def list_jobs(self, *, offset: int, limit: int) -> tuple[list[ImportJob], int]:
        try:
            resp = (
                self._client.table("import_jobs")
                .select("*", count="exact")
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"import_jobs listing failed: {exc}") from exc
        jobs = [job_from_row(row) for row in resp.data or []]
        return jobs, int(resp.count or 0)

    def resolve_user_id(self, access_token: str) -> str | None:
        try:
            response = self._client.auth.get_user(access_token)
        except (AuthError, httpx.HTTPError) as exc:
            logger.info("Rejected access token: %s", exc)
            return None
        user = getattr(response, "user", None)
        return str(user.id) if user is not None and getattr(user, "id", None) else None

    def get_profile_role(self, user_id: str) -> str | None:
        row = self._first("profiles", "id", user_id, fields="role")
        return row.get("role") if row else None


class SupabaseStorage(MediaStorage):
    def __init__(self, client: Client, bucket: str):
        self._client = client
        self.bucket = bucket
        self._is_public: bool | None = None

    def _bucket(self):
        return self._client.storage.from_(self.bucket)

    def upload(self, path: str, content: bytes, *, content_type: str) -> None:
        try:
            self._bucket().upload(path, content, {"content-type": content_type, "upsert": "false"})
        except (StorageException, httpx.HTTPError) as exc:
            raise PersistenceError(f"Upload to {self.bucket}/{path} failed: {exc}") from exc

    def _bucket_is_public(self) -> bool:
        if self._is_public is None:
            try:
                self._is_public = bool(getattr(self._client.storage.get_bucket(self.bucket), "public", False))
            except (StorageException, httpx.HTTPError) as exc:
                raise PersistenceError(f"Bucket lookup for {self.bucket} failed: {exc}") from exc
        return self._is_public

    def public_url(self, path: str) -> str | None:
        if not self._bucket_is_public():
            return None
        return self._bucket().get_public_url(path) or None

    def signed_url(self, path: str, *, expires_in: int) -> str | None:
        try:
            resp = self._bucket().create_signed_url(path, expires_in)
        except (StorageException, httpx.HTTPError) as exc:
            raise PersistenceError(f"Signing {self.bucket}/{path} failed: {exc}") from exc
        if not isinstance(resp, dict):
            return None
        return resp.get("signedURL") or resp.get("signedUrl")


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise PersistenceError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured.")
    return create_client(settings.supabase_url, settings.supabase_key)


__all__ = [
    "SupabaseCatalog",
    "SupabaseStorage",
    "get_supabase_client",
    "job_from_row",
]
