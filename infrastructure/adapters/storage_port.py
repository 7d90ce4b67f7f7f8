"""Infrastructure adapter that implements the application StoragePort
by delegating to the concrete StorageProvider and translating models.
"""
from __future__ import annotations

from typing import Optional

from application.ports.storage import StoragePort, UploadOutcome
from infrastructure.external.storage import StorageProvider


class StorageProviderPortAdapter(StoragePort):
    def __init__(self, provider: StorageProvider):
        self.provider = provider

    async def upload(
        self,
        data: bytes,
        key: str,
        content_type: Optional[str] = None,
    ) -> UploadOutcome:
        result = await self.provider.upload(data, key, content_type=content_type)
        return UploadOutcome(
            key=result.key,
            size=result.size,
            url=result.url or self.provider.public_url(result.key),
            content_type=result.content_type,
        )

    async def delete(self, key: str) -> bool:
        return await self.provider.delete(key)

    def public_url(self, key: str) -> str:
        return self.provider.public_url(key)

    def key_from_url(self, url: str) -> Optional[str]:
        return self.provider.key_from_url(url)
