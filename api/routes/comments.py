"""
评论API路由 - 评论树、回复、编辑删除与显示状态
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import (
    get_active_auth_context,
    get_auth_context,
    get_comment_service,
    get_optional_auth_context,
    get_pagination,
)
from application.context import AuthContext
from application.dto import (
    CommentCreateDTO,
    CommentResponseDTO,
    CommentTreeDTO,
    CommentUpdateDTO,
    PaginationParams,
    VisibilityDTO,
)
from application.services.comment_service import CommentApplicationService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response

router = APIRouter(
    prefix="/comments",
    tags=["评论"]
)


@router.get("/article/{article_id}", summary="文章评论树", response_model=ApiResponse[CommentTreeDTO])
async def get_comment_tree(
    article_id: int,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: CommentApplicationService = Depends(get_comment_service),
):
    """按层级组织的完整评论树，同级按创建时间升序"""
    return success_response(data=await service.get_tree(ctx, article_id))


@router.get(
    "/article/{article_id}/replies",
    summary="分页查询直接回复",
    response_model=ApiResponse[PaginatedData[CommentResponseDTO]],
)
async def list_replies(
    article_id: int,
    parent_id: Optional[int] = Query(None, description="为空时返回顶层评论"),
    params: PaginationParams = Depends(get_pagination),
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: CommentApplicationService = Depends(get_comment_service),
):
    items, total = await service.list_replies(ctx, article_id, parent_id, params)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.post(
    "",
    summary="发表评论或回复",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[CommentResponseDTO],
)
async def create_comment(
    data: CommentCreateDTO,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: CommentApplicationService = Depends(get_comment_service),
):
    comment = await service.create_comment(ctx, data)
    return success_response(data=comment, message="Comment created")


@router.get("/{comment_id}", summary="评论详情", response_model=ApiResponse[CommentResponseDTO])
async def get_comment(
    comment_id: int,
    service: CommentApplicationService = Depends(get_comment_service),
):
    return success_response(data=await service.get_comment(comment_id))


@router.put("/{comment_id}", summary="编辑评论", response_model=ApiResponse[CommentResponseDTO])
async def update_comment(
    comment_id: int,
    data: CommentUpdateDTO,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: CommentApplicationService = Depends(get_comment_service),
):
    comment = await service.update_comment(ctx, comment_id, data.content)
    return success_response(data=comment, message="Comment updated")


@router.delete("/{comment_id}", summary="删除评论", response_model=ApiResponse[dict])
async def delete_comment(
    comment_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    service: CommentApplicationService = Depends(get_comment_service),
):
    """删除评论及其全部回复"""
    deleted = await service.delete_comment(ctx, comment_id)
    return success_response(data={"deleted": deleted}, message="Comment deleted")


@router.patch("/{comment_id}/visibility", summary="切换显示状态", response_model=ApiResponse[VisibilityDTO])
async def toggle_visibility(
    comment_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    service: CommentApplicationService = Depends(get_comment_service),
):
    return success_response(data=await service.toggle_visibility(ctx, comment_id))
