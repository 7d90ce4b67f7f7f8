"""Storage provider protocol definitions."""
from typing import Optional, Protocol, runtime_checkable

from .models import UploadResult


@runtime_checkable
class StorageProvider(Protocol):
    """Core storage provider protocol for duck typing."""

    async def upload(
        self,
        file: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload file to storage."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete file from storage. Returns False if it did not exist."""
        ...

    async def exists(self, key: str) -> bool:
        """Check if file exists in storage."""
        ...

    def public_url(self, key: str) -> str:
        """Get public URL for file."""
        ...

    def key_from_url(self, url: str) -> Optional[str]:
        """Reverse of public_url; None when the URL is not served by this storage."""
        ...

    async def health_check(self) -> bool:
        """Check storage connectivity and permissions."""
        ...
