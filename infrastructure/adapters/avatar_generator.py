"""AvatarGenerator 端口的 DiceBear 实现：获取PNG并存入本地存储"""
from __future__ import annotations

from application.ports.avatar import AvatarGenerator
from application.ports.storage import StoragePort
from application.utils.storage import build_storage_key
from core.logging_config import get_logger
from infrastructure.external.api_clients.base import APIError
from infrastructure.external.api_clients.dicebear import DiceBearClient
from infrastructure.external.storage import StorageError

logger = get_logger(__name__)


class DiceBearAvatarGenerator(AvatarGenerator):
    def __init__(self, client: DiceBearClient, storage: StoragePort, default_url: str):
        self._client = client
        self._storage = storage
        self._default_url = default_url

    async def generate(self, seed: str) -> str:
        try:
            data = await self._client.fetch_png(seed)
            outcome = await self._storage.upload(
                data, build_storage_key("avatars", "png"), content_type="image/png"
            )
        except (APIError, StorageError) as exc:
            logger.warning("avatar_generation_failed", seed=seed, error=str(exc))
            return self._default_url
        logger.info("avatar_generated", seed=seed, key=outcome.key)
        return outcome.url
