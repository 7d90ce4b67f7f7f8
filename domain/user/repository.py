"""
用户仓储接口 - 定义数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import User, UserRole, UserStatus


class UserRepository(ABC):
    """用户仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, user: User) -> User:
        """创建用户"""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        """根据ID获取用户"""

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """根据用户名获取用户"""

    @abstractmethod
    async def get_by_ids(self, user_ids: List[int]) -> dict[int, User]:
        """批量获取用户"""

    @abstractmethod
    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> List[User]:
        """获取用户列表"""

    @abstractmethod
    async def count_all(
        self,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> int:
        """统计用户数量"""

    @abstractmethod
    async def update(self, user: User) -> User:
        """更新用户"""

    @abstractmethod
    async def delete(self, user_id: int) -> bool:
        """删除用户行（关联数据需调用方先行处理）"""

    @abstractmethod
    async def exists_by_username(self, username: str) -> bool:
        """检查用户名是否存在"""

    @abstractmethod
    async def count_admins(self) -> int:
        """统计管理员数量（最后一个管理员保护）"""

    @abstractmethod
    async def content_counts(self, user_ids: List[int]) -> dict[int, tuple[int, int]]:
        """批量统计 {user_id: (文章数, 评论数)}"""
