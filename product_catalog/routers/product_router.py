"""商品目录 API 路由"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, HTTPException, Path, Query, Response

from product_catalog.core.config import settings
from product_catalog.core.dependencies import CurrentUserDep, ProductServiceDep
from product_catalog.schemas.product import (
    ErrorResponse,
    ProductCreateRequest,
    ProductPageResponse,
    ProductResponse,
    ProductStatusUpdateRequest,
    ProductUpdateRequest,
)
from product_catalog.services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["商品管理"],
    responses={
        400: {"model": ErrorResponse, "description": "请求参数错误"},
        404: {"model": ErrorResponse, "description": "商品不存在"},
        500: {"model": ErrorResponse, "description": "服务器内部错误"},
    },
)

search_router = APIRouter(tags=["商品搜索"])


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"{action}失败: {str(e)}")
    # 未知异常统一抛 500
    return HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "",
    status_code=201,
    response_model=ProductResponse,
    summary="创建商品",
    description="创建新商品，SKU 必须全局唯一。",
    responses={409: {"model": ErrorResponse, "description": "SKU 已存在"}},
)
def create_product(
    response: Response,
    request: ProductCreateRequest = Body(..., description="商品信息"),
    user_id: str = CurrentUserDep,
    service: ProductService = ProductServiceDep,
):
    """创建商品（201 + Location）"""
    logger.info(f"Creating product with SKU {request.sku} by user {user_id}")
    try:
        result = service.create_product(request, user_id)
    except HTTPException:
        # 透传 HTTPException
        raise
    except Exception as e:
        raise _internal_error("创建商品", e)

    response.headers["Location"] = f"{settings.API_PREFIX}/products/{result.id}"
    return result


@router.get(
    "",
    response_model=ProductPageResponse,
    summary="分页查询商品",
    description="""分页查询商品列表。

    **排序字段：** Name, Price, Category, StockQuantity, CreatedAt, UpdatedAt（大小写不敏感）

    未指定排序字段时按 Name 升序。
    """,
)
def list_products(
    page: int = Query(1, ge=1, description="页码（从 1 开始）"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        alias="pageSize",
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="每页条数",
    ),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="排序字段"),
    sort_order: Optional[str] = Query("asc", alias="sortOrder", description="asc 或 desc"),
    service: ProductService = ProductServiceDep,
):
    logger.info(f"Fetching products - Page: {page}, PageSize: {page_size}, SortBy: {sort_by or 'Name'}")
    try:
        return service.list_products(page, page_size, sort_by, sort_order)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("查询商品列表", e)


@router.get(
    "/category/{category}",
    response_model=ProductPageResponse,
    summary="按分类查询商品",
)
def list_products_by_category(
    category: str = Path(..., description="分类名称", examples=["Electronics"]),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=settings.MAX_PAGE_SIZE),
    service: ProductService = ProductServiceDep,
):
    """分类下的在售商品（分类名大小写不敏感）"""
    try:
        return service.search_products(category=category, page=page, page_size=page_size)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("按分类查询商品", e)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="查询商品详情",
)
def get_product(
    product_id: UUID = Path(..., description="商品ID"),
    service: ProductService = ProductServiceDep,
):
    logger.info(f"Fetching product {product_id}")
    try:
        return service.get_product(product_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("查询商品", e)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="全量更新商品",
    description="按约定提交全部字段；未提交或为空串的字符串字段保持不变。",
    responses={409: {"model": ErrorResponse, "description": "SKU 已存在"}},
)
def update_product(
    product_id: UUID = Path(..., description="商品ID"),
    request: ProductUpdateRequest = Body(...),
    user_id: str = CurrentUserDep,
    service: ProductService = ProductServiceDep,
):
    logger.info(f"Updating product {product_id} by user {user_id}")
    try:
        return service.update_product(product_id, request, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("更新商品", e)


@router.patch(
    "/{product_id}",
    response_model=ProductResponse,
    summary="部分更新商品",
    description="只更新提交的字段，其余保持不变。",
    responses={409: {"model": ErrorResponse, "description": "SKU 已存在"}},
)
def patch_product(
    product_id: UUID = Path(..., description="商品ID"),
    request: ProductUpdateRequest = Body(...),
    user_id: str = CurrentUserDep,
    service: ProductService = ProductServiceDep,
):
    logger.info(f"Patching product {product_id} by user {user_id}")
    try:
        return service.update_product(product_id, request, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("部分更新商品", e)


@router.delete(
    "/{product_id}",
    status_code=204,
    response_class=Response,
    summary="删除商品",
    description="物理删除商品及其图片，不可恢复。软删除请使用状态接口设置为 INACTIVE。",
)
def delete_product(
    product_id: UUID = Path(..., description="商品ID"),
    service: ProductService = ProductServiceDep,
):
    logger.info(f"Deleting product {product_id}")
    try:
        service.delete_product(product_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("删除商品", e)
    return Response(status_code=204)


@router.patch(
    "/{product_id}/status",
    response_model=ProductResponse,
    summary="更新商品状态",
    description="可选状态：ACTIVE, INACTIVE, DISCONTINUED，任意状态间可直接切换。",
)
def update_product_status(
    product_id: UUID = Path(..., description="商品ID"),
    request: ProductStatusUpdateRequest = Body(...),
    user_id: str = CurrentUserDep,
    service: ProductService = ProductServiceDep,
):
    logger.info(f"Updating product {product_id} status to {request.status.value} by user {user_id}")
    try:
        return service.update_product_status(product_id, request.status, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("更新商品状态", e)


@search_router.get(
    "/search",
    response_model=ProductPageResponse,
    summary="搜索商品",
    description="""按关键字、分类、价格区间、库存搜索在售商品。

    - query 匹配名称或描述（子串，大小写不敏感）
    - minPrice / maxPrice 为闭区间
    - inStock=true 只返回有库存商品，inStock=false 只返回无库存商品
    """,
    responses={400: {"model": ErrorResponse, "description": "请求参数错误"}},
)
def search_products(
    query: Optional[str] = Query(None, description="关键字", examples=["laptop"]),
    category: Optional[str] = Query(None, description="分类"),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=settings.MAX_PAGE_SIZE),
    service: ProductService = ProductServiceDep,
):
    try:
        return service.search_products(
            query=query,
            category=category,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            page=page,
            page_size=page_size,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("搜索商品", e)
