"""ConstructionResult — the outcome of trying to build a storage backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bot_storage.stores.base import StorageBackend


@dataclass(frozen=True)
class ConstructionResult:
    """Immutable result of a backend construction attempt.

    Attributes:
        backend: The ready backend when construction succeeded.
        kind:    Label of the backend that was attempted.
        reason:  Human-readable failure explanation (empty on success).
        error:   The exception that caused the failure, if any.
    """

    kind: str
    backend: StorageBackend | None = None
    reason: str = ""
    error: BaseException | None = None

    # ── Factory helpers ──────────────────────────────────────

    @staticmethod
    def ok(backend: StorageBackend) -> ConstructionResult:
        return ConstructionResult(kind=backend.name, backend=backend)

    @staticmethod
    def failed(kind: str, error: BaseException) -> ConstructionResult:
        return ConstructionResult(kind=kind, reason=str(error) or type(error).__name__, error=error)
