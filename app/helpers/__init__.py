"""Shared helper functions used by route handlers."""

from .dependencies import (
    ADMIN_ROLES,
    AdminUser,
    get_catalog,
    get_orchestrator,
    get_storage,
    require_admin,
)
from .importing import (
    run_import_batch,
    run_import_by_url,
    run_supplier_search,
)

__all__ = [
    "ADMIN_ROLES",
    "AdminUser",
    "get_catalog",
    "get_orchestrator",
    "get_storage",
    "require_admin",
    "run_import_batch",
    "run_import_by_url",
    "run_supplier_search",
]
