"""
认证API路由 - 注册、登录、令牌刷新
"""
from fastapi import APIRouter, Depends, status

from api.dependencies import get_auth_context, get_user_service
from application.context import AuthContext
from application.dto import (
    AuthResponseDTO,
    LoginDTO,
    RegisterDTO,
    TokenDTO,
    UserResponseDTO,
    UsernameCheckDTO,
)
from application.services.user_service import UserApplicationService
from core.response import Response as ApiResponse, success_response

router = APIRouter(
    prefix="/auth",
    tags=["认证"]
)


@router.post(
    "/register",
    summary="用户注册",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[AuthResponseDTO],
)
async def register(
    data: RegisterDTO,
    service: UserApplicationService = Depends(get_user_service),
):
    """
    注册新用户，返回访问令牌和用户信息

    - **username**: 6-20个字符，只能包含字母、数字和下划线
    - **password**: 至少8位，同时包含字母和数字
    - 系统中没有管理员时，注册用户自动成为管理员
    """
    result = await service.register_user(data)
    return success_response(data=result, message="Registration successful")


@router.post("/login", summary="用户登录", response_model=ApiResponse[AuthResponseDTO])
async def login(
    data: LoginDTO,
    service: UserApplicationService = Depends(get_user_service),
):
    result = await service.login(data)
    return success_response(data=result, message="Login successful")


@router.post("/logout", summary="退出登录", response_model=ApiResponse[None])
async def logout(ctx: AuthContext = Depends(get_auth_context)):
    """令牌无状态，客户端丢弃即可"""
    return success_response(message="Logged out")


@router.post("/refresh-token", summary="刷新访问令牌", response_model=ApiResponse[TokenDTO])
async def refresh_token(
    ctx: AuthContext = Depends(get_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    token = await service.refresh_token(ctx)
    return success_response(data=token, message="Token refreshed")


@router.get("/me", summary="获取当前用户", response_model=ApiResponse[UserResponseDTO])
async def me(
    ctx: AuthContext = Depends(get_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    return success_response(data=await service.get_user(ctx.user_id))


@router.get(
    "/check-username/{username}",
    summary="检查用户名是否可用",
    response_model=ApiResponse[UsernameCheckDTO],
)
async def check_username(
    username: str,
    service: UserApplicationService = Depends(get_user_service),
):
    return success_response(data=await service.check_username(username))
