"""商品 API 的请求与响应模型"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from pydantic import Field, PlainSerializer

from product_catalog.models.product import ProductStatus
from product_catalog.schemas.base import CamelSchema


# NUMERIC(18,2) 范围内且 15 位有效数字以内，JSON 数字可无损往返
MAX_PRICE = Decimal("9999999999999.99")

# 价格内部保持 Decimal，输出 JSON 时为数字
Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# ==================== 子对象 ====================

class ProductImageSchema(CamelSchema):
    """商品图片（请求与响应共用）"""
    url: str = Field("", description="图片地址")
    alt: str = Field("", description="无图片时的替代文本")
    primary: bool = Field(False, description="是否主图")


# ==================== 请求模型 ====================

class ProductCreateRequest(CamelSchema):
    """创建商品请求"""
    name: str = Field(..., min_length=1, max_length=100, examples=["Laptop"])
    description: str = Field("", max_length=500)
    price: Decimal = Field(..., ge=Decimal("0.01"), le=MAX_PRICE, examples=[999.99])
    category: str = Field(..., min_length=1, max_length=50, examples=["Electronics"])
    stock_quantity: int = Field(0, ge=0)
    sku: str = Field(..., min_length=1, max_length=50, examples=["LAPTOP-001"])
    images: List[ProductImageSchema] = Field(default_factory=list)
    attributes: Dict[str, str] = Field(default_factory=dict)


class ProductUpdateRequest(CamelSchema):
    """更新商品请求（PUT 与 PATCH 共用）

    所有字段可选；是否提供由 ``model_fields_set`` 判断。
    字符串字段为空串时视为未提供。
    """
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=Decimal("0.01"), le=MAX_PRICE)
    category: Optional[str] = Field(None, max_length=50)
    stock_quantity: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = Field(None, max_length=50)
    images: Optional[List[ProductImageSchema]] = None
    attributes: Optional[Dict[str, str]] = None


class ProductStatusUpdateRequest(CamelSchema):
    """状态更新请求"""
    status: ProductStatus = Field(..., examples=["INACTIVE"])


# ==================== 响应模型 ====================

class ProductResponse(CamelSchema):
    id: UUID
    name: str
    description: str
    price: Price
    category: str
    stock_quantity: int
    sku: str
    images: List[ProductImageSchema] = []
    attributes: Dict[str, str] = {}
    status: str
    created_at: datetime
    updated_at: datetime
    created_by: str
    updated_by: str


class PaginationInfo(CamelSchema):
    page: int
    page_size: int
    total_count: int
    total_pages: int


class ResponseMetadata(CamelSchema):
    """缓存未启用，cached 恒为 False"""
    cached: bool = False
    cache_age: str = ""
    source: str


class ProductPageResponse(CamelSchema):
    """分页响应"""
    data: List[ProductResponse]
    pagination: PaginationInfo
    metadata: ResponseMetadata


class ErrorResponse(CamelSchema):
    """统一错误响应"""
    error: str
    code: str
    details: Dict[str, List[str]] = {}
    timestamp: datetime
    path: str


class HealthCheckResponse(CamelSchema):
    status: str = "healthy"
    service: str = "product-catalog"
    version: str = "1.0.0"
