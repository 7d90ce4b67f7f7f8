"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class UserNotFoundException(BusinessException):
    def __init__(self, user_id: Optional[int] = None):
        details = {"user_id": user_id} if user_id is not None else None
        super().__init__(
            code=BusinessCode.USER_NOT_FOUND,
            message="User not found",
            error_type="UserNotFound",
            details=details,
        )


class UsernameAlreadyExistsException(BusinessException):
    def __init__(self, username: str):
        super().__init__(
            code=BusinessCode.USER_ALREADY_EXISTS,
            message=f"Username {username} already exists",
            error_type="UsernameAlreadyExists",
            details={"username": username},
            field="username",
        )


class PasswordErrorException(BusinessException):
    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(
            code=BusinessCode.PASSWORD_ERROR,
            message=message,
            error_type="PasswordError",
        )


class NewPasswordSameAsOldException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message="New password must differ from old password",
            error_type="NewPasswordSameAsOld",
            field="new_password",
        )


class UserBannedException(BusinessException):
    def __init__(self, reason: Optional[str], expire_at: Optional[datetime]):
        super().__init__(
            code=BusinessCode.USER_BANNED,
            message="User account is banned",
            error_type="UserBanned",
            details={
                "ban_reason": reason,
                "ban_expire_at": expire_at.isoformat() if expire_at else None,
            },
        )


class LastAdminException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.LAST_ADMIN,
            message="Cannot remove the last administrator",
            error_type="LastAdmin",
        )


class PermissionDeniedException(BusinessException):
    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message=message,
            error_type="PermissionDenied",
        )


class ArticleNotFoundException(BusinessException):
    def __init__(self, article_id: Optional[int] = None):
        details = {"article_id": article_id} if article_id is not None else None
        super().__init__(
            code=BusinessCode.ARTICLE_NOT_FOUND,
            message="Article not found",
            error_type="ArticleNotFound",
            details=details,
        )


class InvalidStatusTransitionException(BusinessException):
    def __init__(self, current: str, target: str):
        super().__init__(
            code=BusinessCode.INVALID_STATUS_TRANSITION,
            message=f"Cannot change article status from {current} to {target}",
            error_type="InvalidStatusTransition",
            details={"current": current, "target": target},
            field="status",
        )


class CommentNotFoundException(BusinessException):
    def __init__(self, comment_id: Optional[int] = None):
        details = {"comment_id": comment_id} if comment_id is not None else None
        super().__init__(
            code=BusinessCode.COMMENT_NOT_FOUND,
            message="Comment not found",
            error_type="CommentNotFound",
            details=details,
        )


class CommentDepthExceededException(BusinessException):
    def __init__(self, max_depth: int):
        super().__init__(
            code=BusinessCode.COMMENT_DEPTH_EXCEEDED,
            message=f"Replies cannot be nested deeper than {max_depth} levels",
            error_type="CommentDepthExceeded",
            details={"max_depth": max_depth},
            field="parent_id",
        )


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class UnsupportedMimeTypeException(BusinessException):
    def __init__(self, mime_type: Optional[str], allowed: list[str]):
        super().__init__(
            code=BusinessCode.FILE_TYPE_NOT_ALLOWED,
            message="Only JPEG, PNG and WEBP images are allowed",
            error_type="UnsupportedMimeType",
            details={"mime_type": mime_type, "allowed": allowed},
            field="file",
        )


class FileTooLargeException(BusinessException):
    def __init__(self, size: int, max_size: int):
        super().__init__(
            code=BusinessCode.FILE_TOO_LARGE,
            message=f"File too large, limit is {max_size // (1024 * 1024)}MB",
            error_type="FileTooLarge",
            details={"size": size, "max_size": max_size},
            field="file",
        )
