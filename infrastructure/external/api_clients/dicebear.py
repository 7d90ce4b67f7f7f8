"""DiceBear 头像生成客户端"""
from typing import Optional

import httpx

from .base import APIError, BaseAPIClient


class DiceBearClient(BaseAPIClient):
    """按用户名种子获取 PNG 头像"""

    def __init__(
        self,
        base_url: str = "https://api.dicebear.com/7.x",
        style: str = "bottts-neutral",
        size: int = 200,
        timeout: float = 5.0,
        max_retries: int = 1,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
            headers={"Accept": "image/png"},
            transport=transport,
        )
        self.style = style
        self.size = size

    async def fetch_png(self, seed: str) -> bytes:
        """返回 PNG 字节；响应不是图片时抛出 APIError"""
        response = await self.get(
            f"{self.style}/png",
            params={"seed": seed, "size": self.size},
        )
        if not response.content_type.startswith("image/") or not response.raw_content:
            raise APIError(
                f"Unexpected avatar content type: {response.content_type or 'unknown'}",
                status_code=response.status_code,
                response=response,
            )
        return response.raw_content
