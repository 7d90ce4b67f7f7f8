"""头像生成端口"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AvatarGenerator(Protocol):
    async def generate(self, seed: str) -> str:
        """为种子生成头像并返回公开URL；失败时返回默认头像URL，不抛异常"""
        ...
