"""
配置文件 - 项目配置管理
"""
import json
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./blog.db"
    echo: bool = False


class StorageSettings(BaseModel):
    # 本地磁盘存储，文件通过 /uploads 静态路由对外提供
    local_base_path: str = "./uploads"
    public_base_url: str = "/uploads"
    max_cover_size: int = 5 * 1024 * 1024  # 5MB
    max_image_size: int = 5 * 1024 * 1024  # 5MB
    max_avatar_size: int = 2 * 1024 * 1024  # 2MB
    allowed_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/jpg", "image/png", "image/webp"]
    )


class AvatarSettings(BaseModel):
    base_url: str = "https://api.dicebear.com/7.x"
    style: str = "bottts-neutral"
    size: int = 200
    timeout: float = 5.0
    max_retries: int = 1
    default_url: str = "/uploads/avatars/default.png"


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Blog Platform API")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    avatar: AvatarSettings = Field(default_factory=AvatarSettings)

    # 安全配置
    SECRET_KEY: Optional[str] = Field(
        default=None,
        description="JWT签名密钥，生产环境必须设置"
    )
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)  # 7天

    # CORS配置
    CORS_ORIGINS: list = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
    )

    # 评论最大嵌套层级（根评论为第1层）
    COMMENT_MAX_DEPTH: int = Field(default=3, ge=1)

    # 分页配置（支持环境变量覆盖）
    DEFAULT_PAGE_SIZE: int = Field(default=10)
    MAX_PAGE_SIZE: int = Field(default=100)

    # 日志/请求体记录配置
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)
    LOG_REQUEST_BODY_ALLOW_MULTIPART: bool = Field(default=False)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_secret_key(self):
        # 所有环境均要求显式配置 SECRET_KEY，避免重启后 Token 全部失效
        if not self.SECRET_KEY:
            raise ValueError(
                "SECRET_KEY 未配置。请在环境变量或 .env 中设置 SECRET_KEY"
            )
        return self

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                try:
                    arr = json.loads(s)
                except ValueError:
                    arr = None
                if isinstance(arr, list):
                    return arr
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
