"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from core.config import settings
from domain.article.entity import ArticleStatus
from domain.comment.entity import CommentVisibility
from domain.user.entity import UserRole, UserStatus


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class PaginationParams(DTOBase):
    """分页参数（页码/每页大小），自动派生 skip/limit"""
    page: int = Field(1, ge=1, description="页码，从1开始")
    size: int = Field(
        default=settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="每页大小",
    )

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size


# ---------------------------------------------------------------- 用户 / 认证

class RegisterDTO(DTOBase):
    """注册DTO；用户名与密码规则由领域层校验"""
    username: str = Field(..., description="用户名，6-20位字母、数字或下划线")
    password: str = Field(..., description="密码，至少8位，包含字母和数字")
    real_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    bio: Optional[str] = Field(None, max_length=500)


class LoginDTO(DTOBase):
    """登录DTO"""
    username: str
    password: str


class TokenDTO(DTOBase):
    """令牌DTO"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # 秒


class UserResponseDTO(DTOBase):
    """用户响应DTO"""
    id: int
    username: str
    role: UserRole
    status: UserStatus
    ban_reason: Optional[str] = None
    ban_expire_at: Optional[datetime] = None
    real_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    bio: Optional[str] = None
    avatar_url: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserWithStatsDTO(UserResponseDTO):
    article_count: int = 0
    comment_count: int = 0


class UserProfileDTO(DTOBase):
    """公开资料（不含封禁信息）"""
    id: int
    username: str
    role: UserRole
    real_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: str
    created_at: Optional[datetime] = None
    article_count: int = 0
    comment_count: int = 0


class AuthResponseDTO(TokenDTO):
    """登录/注册结果：令牌 + 用户"""
    user: UserResponseDTO


class UsernameCheckDTO(DTOBase):
    username: str
    available: bool
    valid: bool


class UserUpdateDTO(DTOBase):
    """用户更新DTO"""
    username: Optional[str] = None
    real_name: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    bio: Optional[str] = Field(None, max_length=500)


class ChangePasswordDTO(DTOBase):
    """修改密码DTO"""
    old_password: str = Field(..., description="原密码")
    new_password: str = Field(..., description="新密码")


class DeleteAccountDTO(DTOBase):
    """注销账号：需要确认密码；默认连同文章与评论一起删除"""
    password: str
    delete_articles: bool = True
    delete_comments: bool = True


class AuthorDTO(DTOBase):
    """作者摘要"""
    id: int
    username: str
    avatar_url: str


# ---------------------------------------------------------------- 文章

class ArticleCreateDTO(DTOBase):
    title: str
    content: str
    html_content: Optional[str] = None
    image_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    status: Optional[ArticleStatus] = None


class ArticleUpdateDTO(DTOBase):
    """只替换提供的字段；tags 提供时整体替换标签关联"""
    title: Optional[str] = None
    content: Optional[str] = None
    html_content: Optional[str] = None
    image_url: Optional[str] = None
    tags: Optional[list[str]] = None


class ArticleStatusDTO(DTOBase):
    status: ArticleStatus


class ArticleResponseDTO(DTOBase):
    id: int
    title: str
    content: str
    html_content: Optional[str] = None
    image_url: Optional[str] = None
    status: ArticleStatus
    review_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    view_count: int = 0
    author_id: Optional[int] = None
    author: Optional[AuthorDTO] = None
    tags: list[str] = Field(default_factory=list)
    comment_count: int = 0
    reactions: dict[str, int] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ViewCountDTO(DTOBase):
    article_id: int
    view_count: int


class UploadResponseDTO(DTOBase):
    url: str
    key: str
    size: int
    content_type: Optional[str] = None


class ReactionRequestDTO(DTOBase):
    # 取值由领域层校验，非法值返回 400
    type: str


class ReactionSummaryDTO(DTOBase):
    article_id: int
    counts: dict[str, int]
    total: int
    user_reaction: Optional[str] = None


class ReactionResultDTO(ReactionSummaryDTO):
    outcome: str


class ReactionUserDTO(DTOBase):
    user_id: int
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    type: str
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------- 评论

class CommentCreateDTO(DTOBase):
    article_id: int
    content: str
    parent_id: Optional[int] = None


class CommentUpdateDTO(DTOBase):
    content: str


class CommentResponseDTO(DTOBase):
    id: int
    article_id: int
    user_id: Optional[int] = None
    parent_id: Optional[int] = None
    content: str
    visibility: CommentVisibility
    created_at: Optional[datetime] = None
    author: Optional[AuthorDTO] = None


class CommentTreeNodeDTO(CommentResponseDTO):
    children: list["CommentTreeNodeDTO"] = Field(default_factory=list)


class CommentTreeDTO(DTOBase):
    article_id: int
    total: int
    comments: list[CommentTreeNodeDTO]


class CommentWithArticleDTO(CommentResponseDTO):
    article_title: Optional[str] = None


class VisibilityDTO(DTOBase):
    id: int
    visibility: CommentVisibility


# ---------------------------------------------------------------- 管理后台

class BanUserDTO(DTOBase):
    reason: str = Field(..., min_length=1, max_length=255)
    duration_hours: float = Field(..., gt=0, description="封禁时长（小时）")


class RoleUpdateDTO(DTOBase):
    role: UserRole


class ReviewDTO(DTOBase):
    status: ArticleStatus
    reason: Optional[str] = Field(None, max_length=500)


class BatchDeleteDTO(DTOBase):
    ids: list[int] = Field(..., min_length=1)


class BatchDeleteResultDTO(DTOBase):
    requested: int
    deleted: int


class DeleteReportDTO(DTOBase):
    reactions_deleted: int = 0
    comments_deleted: int = 0
    comments_orphaned: int = 0
    articles_deleted: int = 0
    articles_orphaned: int = 0


class StatsDTO(DTOBase):
    users: dict[str, int]
    articles: dict[str, int]
    comments: dict[str, int]
    reactions: int


