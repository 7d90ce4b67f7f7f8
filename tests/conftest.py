"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import functools
import os
from datetime import date

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from application.dto import RegisterDTO
from application.services.user_service import UserApplicationService
from infrastructure.adapters.storage_port import StorageProviderPortAdapter
from infrastructure.database import enable_sqlite_foreign_keys
from infrastructure.external.storage import StorageConfig
from infrastructure.external.storage.providers.local import LocalProvider
from infrastructure.models import Base
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

DEFAULT_PASSWORD = "secret123"


class StubAvatarGenerator:
    """不访问网络，固定返回默认头像"""

    def __init__(self, url: str = "/uploads/avatars/default.png"):
        self.url = url
        self.seeds = []

    async def generate(self, seed: str) -> str:
        self.seeds.append(seed)
        return self.url


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def uow_factory(engine):
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    return functools.partial(SQLAlchemyUnitOfWork, session_factory)


@pytest.fixture
def storage(tmp_path):
    provider = LocalProvider(StorageConfig(local_base_path=str(tmp_path / "uploads"), public_base_url="/uploads"))
    return StorageProviderPortAdapter(provider)


@pytest.fixture
def avatar_generator():
    return StubAvatarGenerator()


@pytest.fixture
def user_service(uow_factory, storage, avatar_generator):
    return UserApplicationService(uow_factory, avatar_generator=avatar_generator, storage=storage)


@pytest.fixture
def register(user_service):
    """注册用户并返回 AuthResponseDTO；第一个注册的用户是管理员"""

    async def _register(username: str, password: str = DEFAULT_PASSWORD):
        return await user_service.register_user(RegisterDTO(
            username=username,
            password=password,
            real_name=username.title(),
            date_of_birth=date(1990, 1, 1),
        ))

    return _register


@pytest.fixture
async def client(uow_factory, storage, avatar_generator):
    from api.dependencies import get_avatar_generator, get_storage_port, get_uow_factory
    from main import app

    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[get_storage_port] = lambda: storage
    app.dependency_overrides[get_avatar_generator] = lambda: avatar_generator
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
