"""Custom exceptions for the bot_storage package."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for all storage-related errors."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Storage error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class BackendUnavailableError(StorageError):
    """Raised when the underlying storage cannot be reached or constructed."""

    def __init__(self, backend: str, operation: str, detail: str = "") -> None:
        self.backend = backend
        msg = f"{backend} backend unavailable"
        if detail:
            msg += f" ({detail})"
        super().__init__(operation, msg)


class SchemaValidationError(StorageError):
    """Raised when a record or field value violates the record schema."""

    def __init__(self, operation: str, detail: str = "", field: str | None = None) -> None:
        self.field = field
        super().__init__(operation, detail)
