"""FastAPI dependencies: backend gateways, orchestrator, admin guard."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header

from ..config import get_settings
from ..errors import AuthorizationError
from ..services.catalog import CatalogGateway, MediaStorage
from ..services.orchestrator import ImportOrchestrator

ADMIN_ROLES = frozenset({"admin", "super_admin"})


@dataclass(frozen=True)
class AdminUser:
    id: str
    role: str


def get_catalog() -> CatalogGateway:
    from ..services.catalog.supabase import SupabaseCatalog, get_supabase_client

    return SupabaseCatalog(get_supabase_client())


def get_storage() -> MediaStorage | None:
    from ..services.catalog.supabase import SupabaseStorage, get_supabase_client

    return SupabaseStorage(get_supabase_client(), get_settings().storage_bucket)


def get_orchestrator(
    catalog: CatalogGateway = Depends(get_catalog),
    storage: MediaStorage | None = Depends(get_storage),
) -> ImportOrchestrator:
    return ImportOrchestrator(catalog, storage)


def _bearer_token(authorization: str | None) -> str | None:
    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_admin(
    authorization: str | None = Header(default=None),
    catalog: CatalogGateway = Depends(get_catalog),
) -> AdminUser:
    token = _bearer_token(authorization)
    if token is None:
        raise AuthorizationError()
    user_id = catalog.resolve_user_id(token)
    if not user_id:
        raise AuthorizationError()
    role = catalog.get_profile_role(user_id)
    if role not in ADMIN_ROLES:
        raise AuthorizationError()
    return AdminUser(id=user_id, role=role)


__all__ = [
    "ADMIN_ROLES",
    "AdminUser",
    "get_catalog",
    "get_orchestrator",
    "get_storage",
    "require_admin",
]
