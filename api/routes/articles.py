"""
文章API路由 - 列表、详情、发布流程、图片上传与表态
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from api.dependencies import (
    get_active_auth_context,
    get_article_service,
    get_auth_context,
    get_optional_auth_context,
    get_pagination,
    get_reaction_service,
)
from application.context import AuthContext
from application.dto import (
    ArticleCreateDTO,
    ArticleResponseDTO,
    ArticleStatusDTO,
    ArticleUpdateDTO,
    PaginationParams,
    ReactionRequestDTO,
    ReactionResultDTO,
    ReactionSummaryDTO,
    ReactionUserDTO,
    UploadResponseDTO,
    ViewCountDTO,
)
from application.services.article_service import ArticleApplicationService
from application.services.reaction_service import ReactionApplicationService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response

router = APIRouter(
    prefix="/articles",
    tags=["文章"]
)


@router.get("", summary="文章列表", response_model=ApiResponse[PaginatedData[ArticleResponseDTO]])
async def list_articles(
    params: PaginationParams = Depends(get_pagination),
    search: Optional[str] = Query(None, description="标题/正文关键字"),
    sort: Literal["created_at", "view_count"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    tag: Optional[str] = Query(None, description="按标签过滤"),
    status: Optional[str] = Query(None, description="仅管理员可用：draft/pending/published/rejected/all"),
    author_id: Optional[int] = Query(None),
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """非管理员只能看到已发布文章，status 参数会被忽略"""
    items, total = await service.list_articles(
        ctx, params, search=search, sort=sort, order=order, tag=tag, status=status, author_id=author_id
    )
    return paginated_response(items=items, total=total, page=params.page, size=params.size)


@router.post(
    "",
    summary="创建文章",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[ArticleResponseDTO],
)
async def create_article(
    data: ArticleCreateDTO,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    article = await service.create_article(ctx, data)
    return success_response(data=article, message="Article created")


@router.post("/images", summary="上传正文图片", response_model=ApiResponse[UploadResponseDTO])
async def upload_image(
    image: UploadFile = File(...),
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.upload_image(ctx, await image.read(), image.content_type)
    return success_response(data=result, message="Image uploaded")


@router.post("/cover", summary="预上传封面", response_model=ApiResponse[UploadResponseDTO])
async def upload_cover_draft(
    cover: UploadFile = File(...),
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """创建文章前上传封面，返回的 url 填入 image_url"""
    result = await service.upload_image(ctx, await cover.read(), cover.content_type, kind="covers")
    return success_response(data=result, message="Cover uploaded")


@router.get("/{article_id}", summary="文章详情", response_model=ApiResponse[ArticleResponseDTO])
async def get_article(
    article_id: int,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    return success_response(data=await service.get_article(ctx, article_id))


@router.put("/{article_id}", summary="编辑文章", response_model=ApiResponse[ArticleResponseDTO])
async def update_article(
    article_id: int,
    data: ArticleUpdateDTO,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    article = await service.update_article(ctx, article_id, data)
    return success_response(data=article, message="Article updated")


@router.delete("/{article_id}", summary="删除文章", response_model=ApiResponse[None])
async def delete_article(
    article_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """删除文章及其评论、表态和标签关联"""
    await service.delete_article(ctx, article_id)
    return success_response(message="Article deleted")


@router.patch("/{article_id}/status", summary="修改文章状态", response_model=ApiResponse[ArticleResponseDTO])
async def change_status(
    article_id: int,
    data: ArticleStatusDTO,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    article = await service.change_status(ctx, article_id, data.status)
    return success_response(data=article, message="Status updated")


@router.post("/{article_id}/view", summary="浏览计数", response_model=ApiResponse[ViewCountDTO])
async def increment_view(
    article_id: int,
    service: ArticleApplicationService = Depends(get_article_service),
):
    return success_response(data=await service.increment_view(article_id))


@router.post("/{article_id}/cover", summary="上传文章封面", response_model=ApiResponse[ArticleResponseDTO])
async def upload_cover(
    article_id: int,
    cover: UploadFile = File(...),
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    article = await service.upload_cover(ctx, article_id, await cover.read(), cover.content_type)
    return success_response(data=article, message="Cover updated")


@router.delete("/{article_id}/cover", summary="移除文章封面", response_model=ApiResponse[ArticleResponseDTO])
async def remove_cover(
    article_id: int,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ArticleApplicationService = Depends(get_article_service),
):
    article = await service.remove_cover(ctx, article_id)
    return success_response(data=article, message="Cover removed")


# ----------------------------------------------------------------------
# 表态
# ----------------------------------------------------------------------
@router.get("/{article_id}/reaction", summary="表态汇总", response_model=ApiResponse[ReactionSummaryDTO])
async def get_reaction_summary(
    article_id: int,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    """各类型计数；登录用户附带自己的表态"""
    return success_response(data=await service.get_summary(ctx, article_id))


@router.post("/{article_id}/reaction", summary="表态", response_model=ApiResponse[ReactionResultDTO])
async def react(
    article_id: int,
    data: ReactionRequestDTO,
    ctx: AuthContext = Depends(get_active_auth_context),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    """
    同类型再次表态为取消，不同类型为切换

    - **type**: like / love / haha / angry
    """
    result = await service.set_reaction(ctx, article_id, data.type)
    return success_response(data=result)


@router.get(
    "/{article_id}/reactions",
    summary="表态用户列表",
    response_model=ApiResponse[PaginatedData[ReactionUserDTO]],
)
async def list_reactions(
    article_id: int,
    params: PaginationParams = Depends(get_pagination),
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    items, total = await service.list_reactions(ctx, article_id, params)
    return paginated_response(items=items, total=total, page=params.page, size=params.size)
