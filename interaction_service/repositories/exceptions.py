"""Custom exceptions for the repository layer."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from pymongo.errors import ConnectionFailure, ExecutionTimeout


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class DuplicateKeyRepositoryError(RepositoryError):
    """Raised when attempting to insert a document that violates a unique index."""


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


class StorageUnavailableRepositoryError(RepositoryError):
    """Raised when MongoDB cannot be reached or the operation timed out."""


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate transient driver failures into ``StorageUnavailableRepositoryError``."""
    try:
        yield
    except (ConnectionFailure, ExecutionTimeout) as exc:
        raise StorageUnavailableRepositoryError(f"{operation} failed: {exc}") from exc


__all__ = [
    "DuplicateKeyRepositoryError",
    "NotFoundRepositoryError",
    "RepositoryError",
    "StorageUnavailableRepositoryError",
    "storage_errors",
]
