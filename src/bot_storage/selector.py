"""Backend selection, run once at application startup.

The configuration discriminant picks between the file backend and the
MongoDB backend.  A MongoDB backend that cannot be built (driver not
installed, server unreachable, index registration failing) is replaced by
the file backend; that fallback is the only error this package absorbs.
"""

from __future__ import annotations

import logging

from bot_storage._internal.clock import Clock
from bot_storage.config import StorageConfig, StorageKind
from bot_storage.exceptions import StorageError
from bot_storage.result import ConstructionResult
from bot_storage.stores.base import StorageBackend
from bot_storage.stores.file import FileBackend

logger = logging.getLogger(__name__)


async def try_remote(config: StorageConfig, *, clock: Clock | None = None) -> ConstructionResult:
    """Attempt to build a connected MongoDB backend from *config*.

    Never raises for construction failures; the failure is returned as a
    :class:`ConstructionResult` instead.
    """
    try:
        from bot_storage.stores.mongo import MongoBackend
    except ImportError as exc:
        return ConstructionResult.failed("mongodb", exc)

    try:
        backend = await MongoBackend.connect(config, clock=clock)
    except StorageError as exc:
        return ConstructionResult.failed(MongoBackend.name, exc)
    except Exception as exc:
        logger.exception("Unexpected error while constructing the MongoDB backend")
        return ConstructionResult.failed(MongoBackend.name, exc)
    return ConstructionResult.ok(backend)


async def select_backend(
    config: StorageConfig | None = None,
    *,
    clock: Clock | None = None,
) -> StorageBackend:
    """Build, open and return the storage backend selected by *config*.

    Args:
        config: Storage settings.  Defaults to ``StorageConfig()``, which
                reads ``BOT_STORAGE_*`` environment variables.
        clock:  Optional clock passed to the backend for bookkeeping
                timestamps.

    Returns:
        A ready :class:`StorageBackend`.

    Raises:
        BackendUnavailableError: If the file backend itself cannot be opened.
    """
    config = config or StorageConfig()
    kind = config.kind

    if kind is StorageKind.MONGO:
        result = await try_remote(config, clock=clock)
        if result.backend is not None:
            logger.info("Selected storage backend: %s", result.backend.name)
            return result.backend
        logger.warning(
            "MongoDB backend unavailable (%s), using file storage instead.",
            result.reason,
        )
    elif kind is None:
        logger.warning("Unknown storage discriminant %r, using file storage.", config.db)

    backend = FileBackend.from_config(config, clock=clock)
    await backend.open()
    logger.info("Selected storage backend: %s", backend.name)
    return backend
