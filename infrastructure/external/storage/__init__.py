"""Storage service entry point and lifecycle management."""
from functools import lru_cache
from typing import Optional

from core.config import settings
from core.logging_config import get_logger
from .base import StorageProvider
from .config import StorageConfig
from .exceptions import NotFoundError, StorageError, ValidationError
from .models import UploadResult
from .providers.local import build_local_provider

logger = get_logger(__name__)

# Global storage client instance
_storage_client: Optional[StorageProvider] = None


@lru_cache
def get_storage_config() -> StorageConfig:
    """Assemble StorageConfig from core.config.settings."""
    s = settings.storage
    return StorageConfig(
        local_base_path=s.local_base_path,
        public_base_url=s.public_base_url,
    )


async def init_storage_client(config: Optional[StorageConfig] = None) -> StorageProvider:
    """Initialize storage client (idempotent)."""
    global _storage_client

    if _storage_client is not None:
        logger.warning("storage_client_already_initialized")
        return _storage_client

    config = config or get_storage_config()
    try:
        _storage_client = await build_local_provider(config)
    except StorageError as e:
        logger.error("storage_client_init_failed", error=str(e))
        raise
    logger.info("storage_client_initialized", base_path=config.local_base_path)
    return _storage_client


def get_storage_client() -> Optional[StorageProvider]:
    return _storage_client


async def shutdown_storage_client() -> None:
    global _storage_client
    if _storage_client is None:
        return
    _storage_client = None
    logger.info("storage_client_shutdown")


async def get_storage() -> StorageProvider:
    """FastAPI dependency for storage service.

    Raises:
        RuntimeError: If storage not initialized
    """
    client = get_storage_client()
    if client is None:
        raise RuntimeError(
            "Storage client not initialized. "
            "Call init_storage_client() during startup."
        )
    return client


__all__ = [
    "init_storage_client",
    "get_storage_client",
    "shutdown_storage_client",
    "get_storage",
    "get_storage_config",
    "StorageConfig",
    "StorageProvider",
    "UploadResult",
    "StorageError",
    "NotFoundError",
    "ValidationError",
]
