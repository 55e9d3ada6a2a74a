"""Service routes: /health."""

from __future__ import annotations

from fastapi import APIRouter

from .. import __version__
from ..config import get_settings

settings = get_settings()
router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "app": settings.app_name, "version": __version__}
