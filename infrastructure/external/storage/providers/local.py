"""Local file system storage provider implementation."""
import hashlib
import mimetypes
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from core.logging_config import get_logger
from ..base import StorageProvider
from ..config import StorageConfig
from ..exceptions import StorageError, ValidationError
from ..models import UploadResult

logger = get_logger(__name__)


class LocalProvider(StorageProvider):
    """Local file system storage provider."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.base_path = Path(config.local_base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def upload(
        self,
        file: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload file to local storage."""
        file_path = self._safe_path(key)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(file)
        except OSError as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e

        logger.info("storage_uploaded", key=key, size=len(file))
        return UploadResult(
            key=key,
            etag=hashlib.md5(file).hexdigest(),
            size=len(file),
            content_type=content_type or self._guess_content_type(key),
            url=self.public_url(key),
        )

    async def delete(self, key: str) -> bool:
        """Delete file from local storage."""
        file_path = self._safe_path(key)
        if not file_path.is_file():
            return False
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
        logger.info("storage_deleted", key=key)
        return True

    async def exists(self, key: str) -> bool:
        """Check if file exists in local storage."""
        try:
            file_path = self._safe_path(key)
        except ValidationError:
            return False
        return file_path.is_file()

    def public_url(self, key: str) -> str:
        """Get public URL for file."""
        base = self.config.public_base_url.rstrip("/")
        return f"{base}/{key.lstrip('/')}"

    def key_from_url(self, url: str) -> Optional[str]:
        if not url:
            return None
        prefix = self.config.public_base_url.rstrip("/") + "/"
        if not url.startswith(prefix):
            return None
        key = url[len(prefix):]
        return key or None

    async def health_check(self) -> bool:
        """Check local storage accessibility."""
        try:
            test_file = self.base_path / ".health_check"
            test_file.touch()
            test_file.unlink()
            return True
        except OSError as e:
            logger.error("storage_health_check_failed", error=str(e))
            return False

    def _safe_path(self, key: str) -> Path:
        """Build safe path preventing directory traversal.

        Raises:
            ValidationError: If path is unsafe
        """
        clean_key = key.lstrip("/")
        if not clean_key:
            raise ValidationError("Empty storage key")
        path = (self.base_path / clean_key).resolve()
        try:
            path.relative_to(self.base_path)
        except ValueError:
            raise ValidationError(f"Invalid path: {key}") from None
        return path

    def _guess_content_type(self, key: str) -> str:
        content_type, _ = mimetypes.guess_type(key)
        return content_type or "application/octet-stream"


async def build_local_provider(config: StorageConfig) -> LocalProvider:
    """Build local storage provider and check the directory is writable."""
    provider = LocalProvider(config)
    if not await provider.health_check():
        raise StorageError("Failed to access local storage")
    return provider
