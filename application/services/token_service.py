"""
令牌服务 - 签发与校验 JWT 访问令牌
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

import jwt

from application.dto import TokenDTO
from core.config import settings
from core.exceptions import TokenExpiredException
from domain.user.entity import User


class TokenService:
    """
    令牌服务（无状态）

    访问令牌携带 sub/username/role/type/jti；登出由客户端丢弃令牌，
    刷新接口基于仍然有效的访问令牌签发新令牌。
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        self._secret_key = secret_key or settings.SECRET_KEY
        self._algorithm = algorithm or settings.ALGORITHM
        self._expire_minutes = expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(self, user: User, now: Optional[datetime] = None) -> str:
        """创建访问令牌"""
        now = now or datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
            "type": "access",
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def issue(self, user: User) -> TokenDTO:
        return TokenDTO(
            access_token=self.create_access_token(user),
            token_type="bearer",
            expires_in=self._expire_minutes * 60,
        )

    def verify_access_token(self, token: str) -> Optional[int]:
        """Verify an access JWT and return the user id.

        - Expired token: raise TokenExpiredException
        - Invalid token or wrong type: return None
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.InvalidTokenError:
            return None

        if payload.get("type") != "access":
            return None

        user_id = payload.get("sub")
        try:
            return int(user_id)
        except (TypeError, ValueError):
            return None
