import pytest

from application.utils.storage import remove_stored_files
from core.logging_config import get_logger
from infrastructure.external.storage import StorageConfig, ValidationError
from infrastructure.external.storage.providers.local import LocalProvider


@pytest.fixture
def provider(tmp_path):
    return LocalProvider(StorageConfig(local_base_path=str(tmp_path), public_base_url="/uploads/"))


@pytest.mark.asyncio
async def test_upload_exists_delete(provider, tmp_path):
    result = await provider.upload(b"abc", "covers/x.png", content_type="image/png")

    assert result.url == "/uploads/covers/x.png"
    assert result.size == 3
    assert (tmp_path / "covers" / "x.png").read_bytes() == b"abc"
    assert await provider.exists("covers/x.png")
    assert await provider.delete("covers/x.png") is True
    assert await provider.delete("covers/x.png") is False


@pytest.mark.asyncio
async def test_traversal_rejected(provider):
    with pytest.raises(ValidationError):
        await provider.upload(b"x", "../escape.txt")
    assert await provider.exists("../../etc/passwd") is False


def test_key_from_url(provider):
    assert provider.key_from_url("/uploads/avatars/a.png") == "avatars/a.png"
    assert provider.key_from_url("https://cdn.example.com/a.png") is None
    assert provider.key_from_url("/uploads/") is None


@pytest.mark.asyncio
async def test_remove_stored_files_skips_default_avatar(storage):
    outcome = await storage.upload(b"img", "avatars/mine.png", content_type="image/png")
    removed = await remove_stored_files(
        storage,
        [outcome.url, outcome.url, "/uploads/avatars/default.png", "https://elsewhere/x.png", None],
        get_logger(__name__),
        kind="avatars",
    )
    assert removed == 1


@pytest.mark.asyncio
async def test_remove_stored_files_only_touches_its_kind(storage):
    avatar = await storage.upload(b"img", "avatars/someone.png", content_type="image/png")
    cover = await storage.upload(b"img", "covers/c.png", content_type="image/png")

    removed = await remove_stored_files(storage, [avatar.url, cover.url], get_logger(__name__), kind="covers")

    assert removed == 1
    assert await storage.provider.exists("avatars/someone.png")
    assert not await storage.provider.exists("covers/c.png")
