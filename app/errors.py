"""Error taxonomy for the external import pipeline."""

from __future__ import annotations


class ImportPipelineError(Exception):
    """Base class. ``status_code`` is the HTTP status the error maps to."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(ImportPipelineError):
    status_code = 400


class UnsupportedProviderError(ImportPipelineError):
    status_code = 400

    def __init__(self, url: str) -> None:
        super().__init__(f"Unsupported provider for URL: {url}")
        self.url = url


class FetchError(ImportPipelineError):
    """Third-party page or image unreachable, non-2xx, or unparsable."""

    status_code = 502

    def __init__(self, message: str, *, url: str | None = None, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.upstream_status = upstream_status


class DuplicateItemError(ImportPipelineError):
    status_code = 409

    def __init__(self, external_id: str) -> None:
        super().__init__("Already exists")
        self.external_id = external_id


class PersistenceError(ImportPipelineError):
    status_code = 500


class AuthorizationError(ImportPipelineError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


__all__ = [
    "AuthorizationError",
    "DuplicateItemError",
    "FetchError",
    "ImportPipelineError",
    "PersistenceError",
    "UnsupportedProviderError",
    "ValidationError",
]
