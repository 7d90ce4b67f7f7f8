"""Application-owned storage port abstraction (hexagonal architecture).

Defines the minimal methods needed by application use cases so that
the application layer does not depend on infrastructure details.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass
class UploadOutcome:
    key: str
    size: int
    url: str
    content_type: Optional[str] = None


@runtime_checkable
class StoragePort(Protocol):
    async def upload(
        self,
        data: bytes,
        key: str,
        content_type: Optional[str] = None,
    ) -> UploadOutcome: ...

    async def delete(self, key: str) -> bool: ...

    def public_url(self, key: str) -> str: ...

    def key_from_url(self, url: str) -> Optional[str]: ...
