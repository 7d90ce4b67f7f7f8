"""Application-level storage helpers to avoid infra coupling."""
from __future__ import annotations

import uuid
from typing import Iterable, Optional

from core.config import settings
from domain.common.exceptions import (
    DomainValidationException,
    FileTooLargeException,
    UnsupportedMimeTypeException,
)

# 允许的图片类型 -> 扩展名
IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def build_storage_key(kind: str, ext: Optional[str] = None) -> str:
    """生成 `<kind>/<uuid>.<ext>` 形式的存储key"""
    filename = uuid.uuid4().hex
    if ext:
        filename = f"{filename}.{ext.lstrip('.')}"
    return f"{kind}/{filename}"


def validate_image_upload(content_type: Optional[str], size: int, max_size: int,
                          allowed_types: list[str]) -> str:
    """校验上传图片的类型和大小，返回扩展名"""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in allowed_types or mime not in IMAGE_EXTENSIONS:
        raise UnsupportedMimeTypeException(mime or "unknown", allowed_types)
    if size > max_size:
        raise FileTooLargeException(size, max_size)
    return IMAGE_EXTENSIONS[mime]


async def remove_stored_files(storage, urls: Iterable[Optional[str]], logger, *, kind: str) -> int:
    """提交成功后尽力删除文件：失败只记录日志，不影响业务结果

    只删除 `<kind>/` 目录下的文件，其余URL即使指向本地存储也跳过。
    """
    removed = 0
    if storage is None:
        return removed
    for url in dict.fromkeys(u for u in urls if u):
        key = storage.key_from_url(url)
        if key is None or url == settings.avatar.default_url:
            continue
        if not key.startswith(f"{kind}/"):
            logger.warning("file_remove_skipped", key=key, expected_kind=kind)
            continue
        try:
            if await storage.delete(key):
                removed += 1
        except Exception as exc:
            logger.warning("file_remove_failed", key=key, error=str(exc))
    return removed


def ensure_cover_url(storage, url: Optional[str]) -> None:
    """客户端提交的 image_url 若指向本地存储，必须是 covers/ 下的文件"""
    if not url or storage is None:
        return
    key = storage.key_from_url(url)
    if key is not None and not key.startswith("covers/"):
        raise DomainValidationException(
            "image_url must reference an uploaded cover",
            field="image_url",
        )


async def release_covers(uow_factory, storage, urls: Iterable[Optional[str]], logger) -> int:
    """删除不再被任何文章引用的封面文件"""
    candidates = list(dict.fromkeys(u for u in urls if u))
    if not candidates or storage is None:
        return 0
    async with uow_factory(readonly=True) as uow:
        in_use = await uow.article_repository.image_urls_in_use(candidates)
    return await remove_stored_files(
        storage, [u for u in candidates if u not in in_use], logger, kind="covers"
    )
    for url in dict.fromkeys(u for u in urls if u):
        key = storage.key_from_url(url)
        if key is None or url == settings.avatar.default_url:
            continue
        try:
            if await storage.delete(key):
                removed += 1
        except Exception as exc:
            logger.warning("file_remove_failed", key=key, error=str(exc))
    return removed


async def store_image(storage, kind: str, data: bytes, content_type: Optional[str], max_size: int):
    """校验并保存图片，返回 UploadOutcome"""
    ext = validate_image_upload(content_type, len(data), max_size, settings.storage.allowed_types)
    mime = (content_type or "").split(";")[0].strip().lower()
    return await storage.upload(data, build_storage_key(kind, ext), content_type=mime)
