"""Copy supplier images into the application's storage bucket.

Every step returns ``None`` on failure and the caller falls back to the
original remote URL, so an image problem never aborts an import.
"""

from __future__ import annotations

import logging
import mimetypes
import secrets
import time
from pathlib import PurePosixPath
from urllib.parse import urlparse

import requests

from ..errors import PersistenceError
from .catalog import MediaStorage
from .providers.common import first_present, http_session, slug_token

logger = logging.getLogger("uvicorn.error")

SIGNED_URL_TTL_SECONDS = 60 * 60 * 24 * 365 * 5
_DEFAULT_EXTENSION = ".jpg"
_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif", ".svg"}


def storage_path(provider_key: str, extension: str) -> str:
    stamp = int(time.time() * 1000)
    return f"external/{slug_token(provider_key) or 'other'}/{stamp}-{secrets.token_hex(4)}{extension}"


def guess_extension(image_url: str, content_type: str | None) -> str:
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime.startswith("image/"):
        guessed = mimetypes.guess_extension(mime)
        if guessed:
            return ".jpg" if guessed == ".jpe" else guessed
    suffix = PurePosixPath(urlparse(image_url).path).suffix.lower()
    if suffix in _IMAGE_EXTENSIONS:
        return suffix
    return _DEFAULT_EXTENSION


class ImageRehoster:
    def __init__(self, storage: MediaStorage | None, *, session: requests.Session | None = None):
        self.storage = storage
        self._http = session or http_session()

    def download(self, image_url: str) -> tuple[bytes, str] | None:
        parsed = urlparse(image_url or "")
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            return None
        try:
            response = self._http.get(image_url, timeout=self._http.request_timeout)
        except requests.RequestException as exc:
            logger.info("Image download failed for %s: %s", image_url, exc)
            return None
        if not 200 <= response.status_code < 300:
            logger.info("Image download for %s returned %s", image_url, response.status_code)
            return None
        content_type = response.headers.get("Content-Type") or "application/octet-stream"
        return response.content, content_type

    def upload(self, payload: tuple[bytes, str], *, image_url: str, provider_key: str) -> str | None:
        content, content_type = payload
        path = storage_path(provider_key, guess_extension(image_url, content_type))
        try:
            self.storage.upload(path, content, content_type=content_type)
        except PersistenceError as exc:
            logger.info("Image upload failed for %s: %s", image_url, exc)
            return None
        return path

    def public_url(self, path: str) -> str | None:
        try:
            return self.storage.public_url(path)
        except PersistenceError as exc:
            logger.info("No public URL for stored image %s: %s", path, exc)
            return None

    def signed_url(self, path: str) -> str | None:
        try:
            return self.storage.signed_url(path, expires_in=SIGNED_URL_TTL_SECONDS)
        except PersistenceError as exc:
            logger.info("Could not sign stored image %s: %s", path, exc)
            return None

    def resolve_url(self, path: str) -> str | None:
        return first_present([lambda: self.public_url(path), lambda: self.signed_url(path)])

    def rehost(self, image_url: str, provider_key: str) -> str:
        """Return a bucket URL for ``image_url``, or ``image_url`` itself."""
        if self.storage is None:
            return image_url
        payload = self.download(image_url)
        path = self.upload(payload, image_url=image_url, provider_key=provider_key) if payload else None
        hosted = self.resolve_url(path) if path else None
        return first_present([hosted, image_url]) or image_url


__all__ = [
    "ImageRehoster",
    "SIGNED_URL_TTL_SECONDS",
    "guess_extension",
    "storage_path",
]
