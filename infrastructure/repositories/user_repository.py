"""
用户仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import (
    UsernameAlreadyExistsException,
    UserNotFoundException,
)
from domain.user.entity import User, UserRole, UserStatus
from domain.user.repository import UserRepository
from infrastructure.models.article import ArticleModel
from infrastructure.models.comment import CommentModel
from infrastructure.models.user import UserModel


logger = get_logger(__name__)


class SQLAlchemyUserRepository(UserRepository):
    """用户仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: UserModel) -> User:
        """将数据库模型转换为领域实体"""
        return User(
            id=model.id,
            username=model.username,
            hashed_password=model.hashed_password,
            role=model.role,
            status=model.status,
            ban_reason=model.ban_reason,
            ban_expire_at=model.ban_expire_at,
            real_name=model.real_name,
            date_of_birth=model.date_of_birth,
            bio=model.bio,
            avatar_url=model.avatar_url,
            created_at=model.created_at,
        )

    def _to_model(self, entity: User) -> UserModel:
        """将领域实体转换为数据库模型"""
        return UserModel(
            id=entity.id,
            username=entity.username,
            hashed_password=entity.hashed_password,
            role=entity.role.value,
            status=entity.status.value,
            ban_reason=entity.ban_reason,
            ban_expire_at=entity.ban_expire_at,
            real_name=entity.real_name,
            date_of_birth=entity.date_of_birth,
            bio=entity.bio,
            avatar_url=entity.avatar_url,
            created_at=entity.created_at,
        )

    def _apply_filters(self, query, search, role, status):
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(UserModel.username.like(pattern), UserModel.real_name.like(pattern)))
        if role is not None:
            query = query.where(UserModel.role == UserRole(role).value)
        if status is not None:
            query = query.where(UserModel.status == UserStatus(status).value)
        return query

    async def create(self, user: User) -> User:
        """创建用户"""
        try:
            db_user = self._to_model(user)
            self.session.add(db_user)
            await self.session.flush()  # 获取生成的ID
            await self.session.refresh(db_user)
            return self._to_entity(db_user)
        except IntegrityError as e:
            if "username" in str(e).lower():
                logger.warning("create_user_conflict", field="username", username=user.username)
                raise UsernameAlreadyExistsException(user.username) from e
            raise

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """根据ID获取用户"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_username(self, username: str) -> Optional[User]:
        """根据用户名获取用户"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_ids(self, user_ids: List[int]) -> dict[int, User]:
        ids = {i for i in user_ids if i is not None}
        if not ids:
            return {}
        result = await self.session.execute(select(UserModel).where(UserModel.id.in_(ids)))
        return {m.id: self._to_entity(m) for m in result.scalars().all()}

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> List[User]:
        """获取用户列表"""
        query = self._apply_filters(select(UserModel), search, role, status)
        # 默认按创建时间倒序，再按ID倒序，确保分页稳定
        query = query.order_by(UserModel.created_at.desc(), UserModel.id.desc())
        query = query.offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(db_user) for db_user in result.scalars().all()]

    async def count_all(
        self,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> int:
        """统计用户数量"""
        query = self._apply_filters(select(func.count()).select_from(UserModel), search, role, status)
        result = await self.session.execute(query)
        return int(result.scalar() or 0)

    async def update(self, user: User) -> User:
        """更新用户"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user.id)
        )
        db_user = result.scalar_one_or_none()

        if not db_user:
            raise UserNotFoundException(user.id)

        db_user.username = user.username
        db_user.hashed_password = user.hashed_password
        db_user.role = user.role.value
        db_user.status = user.status.value
        db_user.ban_reason = user.ban_reason
        db_user.ban_expire_at = user.ban_expire_at
        db_user.real_name = user.real_name
        db_user.date_of_birth = user.date_of_birth
        db_user.bio = user.bio
        db_user.avatar_url = user.avatar_url

        try:
            await self.session.flush()
        except IntegrityError as e:
            if "username" in str(e).lower():
                logger.warning("update_user_conflict", field="username", user_id=user.id, username=user.username)
                raise UsernameAlreadyExistsException(user.username) from e
            raise
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    async def delete(self, user_id: int) -> bool:
        """删除用户"""
        result = await self.session.execute(delete(UserModel).where(UserModel.id == user_id))
        return result.rowcount > 0

    async def exists_by_username(self, username: str) -> bool:
        """检查用户名是否存在"""
        result = await self.session.execute(
            select(func.count()).select_from(UserModel)
            .where(UserModel.username == username)
        )
        return (result.scalar() or 0) > 0

    async def count_admins(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(UserModel)
            .where(UserModel.role == UserRole.ADMIN.value)
        )
        return int(result.scalar() or 0)

    async def content_counts(self, user_ids: List[int]) -> dict[int, tuple[int, int]]:
        ids = list({i for i in user_ids if i is not None})
        if not ids:
            return {}
        article_rows = await self.session.execute(
            select(ArticleModel.author_id, func.count())
            .where(ArticleModel.author_id.in_(ids))
            .group_by(ArticleModel.author_id)
        )
        comment_rows = await self.session.execute(
            select(CommentModel.user_id, func.count())
            .where(CommentModel.user_id.in_(ids))
            .group_by(CommentModel.user_id)
        )
        articles = dict(article_rows.all())
        comments = dict(comment_rows.all())
        return {i: (int(articles.get(i, 0)), int(comments.get(i, 0))) for i in ids}
