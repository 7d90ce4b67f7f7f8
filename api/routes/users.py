"""
用户API路由 - 个人资料、头像、注销与公开主页
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from api.dependencies import (
    get_active_auth_context,
    get_article_service,
    get_auth_context,
    get_comment_service,
    get_pagination,
    get_user_service,
)
from application.context import AuthContext
from application.dto import (
    ArticleResponseDTO,
    ChangePasswordDTO,
    CommentWithArticleDTO,
    DeleteAccountDTO,
    DeleteReportDTO,
    PaginationParams,
    UserProfileDTO,
    UserResponseDTO,
    UserUpdateDTO,
)
from application.services.article_service import ArticleApplicationService
from application.services.comment_service import CommentApplicationService
from application.services.user_service import UserApplicationService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response

router = APIRouter(
    prefix="/users",
    tags=["用户管理"]
)


@router.get("", summary="用户列表", response_model=ApiResponse[PaginatedData[UserProfileDTO]])
async def list_users(
    params: PaginationParams = Depends(get_pagination),
    search: Optional[str] = Query(None, description="按用户名或姓名搜索"),
    service: UserApplicationService = Depends(get_user_service),
):
    items, total = await service.list_users(params, search=search)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.get("/me", summary="获取当前用户信息", response_model=ApiResponse[UserResponseDTO])
async def get_me(
    ctx: AuthContext = Depends(get_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    return success_response(data=await service.get_user(ctx.user_id))


@router.put("/me", summary="更新当前用户信息", response_model=ApiResponse[UserResponseDTO])
async def update_me(
    data: UserUpdateDTO,
    ctx: AuthContext = Depends(get_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    user = await service.update_profile(ctx, data)
    return success_response(data=user, message="Profile updated")


@router.delete("/me", summary="注销账号", response_model=ApiResponse[DeleteReportDTO])
async def delete_me(
    data: DeleteAccountDTO,
    ctx: AuthContext = Depends(get_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    """
    确认密码后删除账号

    - **delete_articles**: true 删除全部文章；false 保留文章并退回待审核
    - **delete_comments**: true 删除全部评论及其回复；false 保留评论内容
    """
    report = await service.delete_account(ctx, data)
    return success_response(data=report, message="Account deleted")


@router.put("/me/password", summary="修改密码", response_model=ApiResponse[None])
async def change_password(
    data: ChangePasswordDTO,
    ctx: AuthContext = Depends(get_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    await service.change_password(ctx, data)
    return success_response(message="Password changed")


@router.post("/me/avatar", summary="上传头像", response_model=ApiResponse[UserResponseDTO])
async def upload_avatar(
    avatar: UploadFile = File(..., description="jpeg/png/webp，不超过2MB"),
    ctx: AuthContext = Depends(get_active_auth_context),
    service: UserApplicationService = Depends(get_user_service),
):
    data = await avatar.read()
    user = await service.update_avatar(ctx, data, avatar.content_type)
    return success_response(data=user, message="Avatar updated")


@router.get(
    "/me/articles",
    summary="我的文章（任意状态）",
    response_model=ApiResponse[PaginatedData[ArticleResponseDTO]],
)
async def my_articles(
    params: PaginationParams = Depends(get_pagination),
    status: Optional[str] = Query(None, description="draft/pending/published/rejected/all"),
    ctx: AuthContext = Depends(get_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    items, total = await service.list_own_articles(ctx, params, status=status)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.get("/{user_id}", summary="用户公开资料", response_model=ApiResponse[UserProfileDTO])
async def get_user(
    user_id: int,
    service: UserApplicationService = Depends(get_user_service),
):
    return success_response(data=await service.get_profile(user_id))


@router.get(
    "/{user_id}/articles",
    summary="用户已发布的文章",
    response_model=ApiResponse[PaginatedData[ArticleResponseDTO]],
)
async def user_articles(
    user_id: int,
    params: PaginationParams = Depends(get_pagination),
    service: ArticleApplicationService = Depends(get_article_service),
):
    items, total = await service.list_published_by_author(user_id, params)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.get(
    "/{user_id}/comments",
    summary="用户的评论",
    response_model=ApiResponse[PaginatedData[CommentWithArticleDTO]],
)
async def user_comments(
    user_id: int,
    params: PaginationParams = Depends(get_pagination),
    service: CommentApplicationService = Depends(get_comment_service),
):
    items, total = await service.list_user_comments(user_id, params)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)
