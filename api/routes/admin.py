"""
管理后台API路由 - 统计、用户管理、文章审核与评论管理
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_admin_context, get_admin_service, get_pagination
from application.context import AuthContext
from application.dto import (
    ArticleResponseDTO,
    BanUserDTO,
    BatchDeleteDTO,
    BatchDeleteResultDTO,
    CommentWithArticleDTO,
    DeleteReportDTO,
    PaginationParams,
    ReviewDTO,
    RoleUpdateDTO,
    StatsDTO,
    UserResponseDTO,
    UserWithStatsDTO,
    VisibilityDTO,
)
from application.services.admin_service import AdminApplicationService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response
from domain.services.cascade_delete import CascadeOptions
from domain.user.entity import UserRole, UserStatus

router = APIRouter(
    prefix="/admin",
    tags=["管理后台"]
)


@router.get("/stats", summary="站点统计", response_model=ApiResponse[StatsDTO])
async def get_stats(
    _: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.get_stats())


# ----------------------------------------------------------------------
# 用户
# ----------------------------------------------------------------------
@router.get("/users", summary="用户列表", response_model=ApiResponse[PaginatedData[UserWithStatsDTO]])
async def list_users(
    params: PaginationParams = Depends(get_pagination),
    search: Optional[str] = Query(None),
    role: Optional[UserRole] = Query(None),
    status: Optional[UserStatus] = Query(None),
    _: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    items, total = await service.list_users(params, search=search, role=role, status=status)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.get("/users/{user_id}", summary="用户详情", response_model=ApiResponse[UserWithStatsDTO])
async def get_user(
    user_id: int,
    _: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.get_user(user_id))


@router.delete("/users/{user_id}", summary="删除用户", response_model=ApiResponse[DeleteReportDTO])
async def delete_user(
    user_id: int,
    delete_articles: bool = Query(True, description="删除该用户的文章；否则保留并解除归属"),
    delete_comments: bool = Query(True, description="删除该用户的评论；否则保留并解除归属"),
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    options = CascadeOptions(delete_articles=delete_articles, delete_comments=delete_comments)
    report = await service.delete_user(ctx, user_id, options)
    return success_response(data=report, message="User deleted")


@router.post("/users/{user_id}/ban", summary="封禁用户", response_model=ApiResponse[UserResponseDTO])
async def ban_user(
    user_id: int,
    data: BanUserDTO,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    user = await service.ban_user(ctx, user_id, data)
    return success_response(data=user, message="User banned")


@router.post("/users/{user_id}/unban", summary="解除封禁", response_model=ApiResponse[UserResponseDTO])
async def unban_user(
    user_id: int,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    user = await service.unban_user(ctx, user_id)
    return success_response(data=user, message="User unbanned")


@router.put("/users/{user_id}/role", summary="修改角色", response_model=ApiResponse[UserResponseDTO])
async def set_role(
    user_id: int,
    data: RoleUpdateDTO,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.set_role(ctx, user_id, data.role))


@router.post("/users/{user_id}/promote", summary="设为管理员", response_model=ApiResponse[UserResponseDTO])
async def promote(
    user_id: int,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.promote(ctx, user_id))


@router.post("/users/{user_id}/demote", summary="取消管理员", response_model=ApiResponse[UserResponseDTO])
async def demote(
    user_id: int,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    """系统中最后一名管理员不能被降级"""
    return success_response(data=await service.demote(ctx, user_id))


# ----------------------------------------------------------------------
# 文章
# ----------------------------------------------------------------------
@router.get("/articles", summary="全部文章", response_model=ApiResponse[PaginatedData[ArticleResponseDTO]])
async def list_articles(
    params: PaginationParams = Depends(get_pagination),
    status: Optional[str] = Query(None, description="draft/pending/published/rejected/all"),
    search: Optional[str] = Query(None),
    _: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    items, total = await service.list_articles(params, status=status, search=search)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.get("/articles/{article_id}", summary="文章详情", response_model=ApiResponse[ArticleResponseDTO])
async def get_article(
    article_id: int,
    _: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.get_article(article_id))


@router.post("/articles/{article_id}/review", summary="审核文章", response_model=ApiResponse[ArticleResponseDTO])
async def review_article(
    article_id: int,
    data: ReviewDTO,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    article = await service.review_article(ctx, article_id, data)
    return success_response(data=article, message="Article reviewed")


@router.post("/articles/batch-delete", summary="批量删除文章", response_model=ApiResponse[BatchDeleteResultDTO])
async def batch_delete_articles(
    data: BatchDeleteDTO,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.batch_delete_articles(ctx, data.ids))


@router.delete("/articles/{article_id}", summary="删除文章", response_model=ApiResponse[None])
async def delete_article(
    article_id: int,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    await service.delete_article(ctx, article_id)
    return success_response(message="Article deleted")


# ----------------------------------------------------------------------
# 评论
# ----------------------------------------------------------------------
@router.get("/comments", summary="全部评论", response_model=ApiResponse[PaginatedData[CommentWithArticleDTO]])
async def list_comments(
    params: PaginationParams = Depends(get_pagination),
    _: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    items, total = await service.list_comments(params)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.post("/comments/batch-delete", summary="批量删除评论", response_model=ApiResponse[BatchDeleteResultDTO])
async def batch_delete_comments(
    data: BatchDeleteDTO,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.batch_delete_comments(ctx, data.ids))


@router.delete("/comments/{comment_id}", summary="删除评论", response_model=ApiResponse[dict])
async def delete_comment(
    comment_id: int,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    deleted = await service.delete_comment(ctx, comment_id)
    return success_response(data={"deleted": deleted}, message="Comment deleted")


@router.patch(
    "/comments/{comment_id}/visibility",
    summary="切换评论显示状态",
    response_model=ApiResponse[VisibilityDTO],
)
async def toggle_comment_visibility(
    comment_id: int,
    ctx: AuthContext = Depends(get_admin_context),
    service: AdminApplicationService = Depends(get_admin_service),
):
    return success_response(data=await service.toggle_comment_visibility(ctx, comment_id))
