"""商品服务实现"""

import logging
import math
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from redlock import Redlock
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from product_catalog.core.config import settings
from product_catalog.core.exceptions import (
    CatalogError,
    CatalogValidationError,
    ConcurrentModificationError,
    DuplicateSkuError,
    ProductNotFoundError,
)
from product_catalog.models.product import Product, ProductStatus
from product_catalog.models.product_images import ProductImage
from product_catalog.schemas.product import (
    PaginationInfo,
    ProductCreateRequest,
    ProductImageSchema,
    ProductPageResponse,
    ProductResponse,
    ProductUpdateRequest,
    ResponseMetadata,
)
from product_catalog.services.product_mapper import serialize_attributes, to_product_response

logger = logging.getLogger(__name__)

# 排序字段白名单（大小写不敏感）
ALLOWED_SORT_FIELDS = ["Name", "Price", "Category", "StockQuantity", "CreatedAt", "UpdatedAt"]

SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "category": Product.category,
    "stockquantity": Product.stock_quantity,
    "createdat": Product.created_at,
    "updatedat": Product.updated_at,
}

# 非空才覆盖的字符串字段
STRING_FIELDS = ("name", "description", "category", "sku")
# 只要提供（非 null）就覆盖的数值字段
VALUE_FIELDS = ("price", "stock_quantity")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_ordering(sort_by: Optional[str] = None, sort_order: Optional[str] = "asc") -> list:
    """把 sortBy/sortOrder 转换为 ORDER BY 子句，id 作为次级排序保证结果稳定"""
    if not sort_by:
        return [Product.name.asc(), Product.id.asc()]

    column = SORT_COLUMNS.get(sort_by.lower())
    if column is None:
        raise CatalogValidationError(
            "Invalid sort field",
            details={"sortBy": [f"Sort field must be one of: {', '.join(ALLOWED_SORT_FIELDS)}"]},
        )

    if sort_order and sort_order.lower() == "desc":
        return [column.desc(), Product.id.desc()]
    return [column.asc(), Product.id.asc()]


def build_images(images: List[ProductImageSchema]) -> List[ProductImage]:
    """按提交顺序生成新的图片记录（新 id）"""
    return [
        ProductImage(
            id=uuid.uuid4(),
            url=image.url,
            alt=image.alt,
            primary=image.primary,
            position=index,
        )
        for index, image in enumerate(images)
    ]


def apply_update(product: Product, request: ProductUpdateRequest) -> None:
    """把更新请求合并到商品上（PUT 与 PATCH 共用）

    字段是否提供以 ``request.model_fields_set`` 为准：
    - name/description/category/sku：提供且非空才覆盖
    - price/stock_quantity：提供且非 null 即覆盖（包括 0）
    - attributes/images：提供且非 null 即整体替换
    """
    provided = request.model_fields_set

    for field in STRING_FIELDS:
        value = getattr(request, field)
        if field in provided and value:
            setattr(product, field, value)

    for field in VALUE_FIELDS:
        value = getattr(request, field)
        if field in provided and value is not None:
            setattr(product, field, value)

    if "attributes" in provided and request.attributes is not None:
        product.attributes_json = serialize_attributes(request.attributes)

    if "images" in provided and request.images is not None:
        # delete-orphan 级联会删除旧图片
        product.images = build_images(request.images)


def _is_sku_violation(error: IntegrityError) -> bool:
    return "sku" in str(error.orig).lower()


class ProductService:
    """商品核心服务类"""

    def __init__(self, db: Session, rlock: Redlock = None, lock_ttl: int = None):
        self.db = db
        self.rlock = rlock
        self.lock_ttl = lock_ttl or settings.SKU_LOCK_TTL_MS

    # ==================== 查询 ====================

    def get_product(self, product_id: uuid.UUID) -> ProductResponse:
        """按 id 查询商品"""
        product = self._get_or_404(product_id)
        return to_product_response(product)

    def list_products(
        self,
        page: int = 1,
        page_size: int = 20,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = "asc",
    ) -> ProductPageResponse:
        """分页查询商品列表

        sortBy 不在白名单时直接抛出校验错误，不执行查询。
        """
        order_by = resolve_ordering(sort_by, sort_order)
        self._check_paging(page, page_size)

        total_count = self.db.execute(
            select(func.count()).select_from(Product)
        ).scalar_one()

        products = self.db.execute(
            select(Product)
            .options(selectinload(Product.images))
            .order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars().all()

        return self._build_page(products, page, page_size, total_count)

    def search_products(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        in_stock: Optional[bool] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> ProductPageResponse:
        """按条件搜索在售商品（子串匹配，不做相关度排序）"""
        self._check_paging(page, page_size)

        conditions = [Product.status == ProductStatus.ACTIVE]
        if query:
            keyword = query.lower()
            conditions.append(
                or_(
                    func.lower(Product.name).contains(keyword, autoescape=True),
                    func.lower(Product.description).contains(keyword, autoescape=True),
                )
            )
        if category:
            conditions.append(func.lower(Product.category) == category.lower())
        if min_price is not None:
            conditions.append(Product.price >= min_price)
        if max_price is not None:
            conditions.append(Product.price <= max_price)
        if in_stock is True:
            conditions.append(Product.stock_quantity > 0)
        elif in_stock is False:
            conditions.append(Product.stock_quantity == 0)

        total_count = self.db.execute(
            select(func.count()).select_from(Product).where(*conditions)
        ).scalar_one()

        products = self.db.execute(
            select(Product)
            .options(selectinload(Product.images))
            .where(*conditions)
            .order_by(Product.name.asc(), Product.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars().all()

        return self._build_page(products, page, page_size, total_count)

    # ==================== 写操作 ====================

    def create_product(self, request: ProductCreateRequest, user_id: str) -> ProductResponse:
        """创建商品（SKU 唯一）"""
        try:
            with self._sku_lock(request.sku):
                logger.debug(f"Checking SKU uniqueness for {request.sku}")
                if self._sku_exists(request.sku):
                    logger.warning(f"SKU 已存在: {request.sku}")
                    raise DuplicateSkuError()

                now = utcnow()
                product = Product(
                    id=uuid.uuid4(),
                    name=request.name,
                    description=request.description,
                    price=request.price,
                    category=request.category,
                    stock_quantity=request.stock_quantity,
                    sku=request.sku,
                    attributes_json=serialize_attributes(request.attributes),
                    status=ProductStatus.ACTIVE,
                    created_at=now,
                    updated_at=now,
                    created_by=user_id,
                    updated_by=user_id,
                )
                product.images = build_images(request.images)

                self.db.add(product)
                self._commit(product)
        except Exception as e:
            self.db.rollback()
            if not isinstance(e, CatalogError):
                logger.error(f"创建商品失败: sku={request.sku}, error={str(e)}")
            raise

        logger.info(f"创建商品成功: id={product.id}, sku={product.sku}, user={user_id}")
        return to_product_response(product)

    def update_product(
        self,
        product_id: uuid.UUID,
        request: ProductUpdateRequest,
        user_id: str,
    ) -> ProductResponse:
        """更新商品（PUT 全量 / PATCH 部分，合并逻辑相同）"""
        product = self._get_or_404(product_id)

        # 只有提交了不同的 SKU 才需要重新校验唯一性
        new_sku = request.sku if request.sku and request.sku != product.sku else None

        try:
            with self._sku_lock(new_sku):
                if new_sku and self._sku_exists(new_sku):
                    logger.warning(f"更新商品时 SKU 冲突: product_id={product_id}, sku={new_sku}")
                    raise DuplicateSkuError()

                apply_update(product, request)
                product.updated_at = utcnow()
                product.updated_by = user_id
                self._commit(product)
        except Exception as e:
            self.db.rollback()
            if not isinstance(e, CatalogError):
                logger.error(f"更新商品失败: product_id={product_id}, error={str(e)}")
            raise

        logger.info(f"更新商品成功: id={product_id}, user={user_id}")
        return to_product_response(product)

    def update_product_status(
        self,
        product_id: uuid.UUID,
        status: ProductStatus,
        user_id: str,
    ) -> ProductResponse:
        """更新商品状态（任意状态间可直接切换）"""
        product = self._get_or_404(product_id)

        try:
            product.status = ProductStatus(status)
            product.updated_at = utcnow()
            product.updated_by = user_id
            self._commit(product)
        except Exception as e:
            self.db.rollback()
            logger.error(f"更新商品状态失败: product_id={product_id}, error={str(e)}")
            raise

        logger.info(f"商品状态已更新: id={product_id}, status={product.status.value}, user={user_id}")
        return to_product_response(product)

    def delete_product(self, product_id: uuid.UUID) -> None:
        """物理删除商品，图片级联删除"""
        product = self._get_or_404(product_id)

        try:
            self.db.delete(product)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"删除商品失败: product_id={product_id}, error={str(e)}")
            raise

        logger.info(f"删除商品成功: id={product_id}")

    # ==================== 内部方法 ====================

    def _get_or_404(self, product_id: uuid.UUID) -> Product:
        product = self.db.get(Product, product_id)
        if product is None:
            logger.warning(f"商品不存在: {product_id}")
            raise ProductNotFoundError()
        return product

    def _sku_exists(self, sku: str) -> bool:
        return self.db.execute(
            select(Product.id).where(Product.sku == sku).limit(1)
        ).first() is not None

    @contextmanager
    def _sku_lock(self, sku: Optional[str]):
        """SKU 写入分布式锁（未配置 Redlock 时只依赖数据库唯一约束）"""
        lock = None
        if self.rlock and sku:
            lock = self.rlock.lock(f"lock:sku:{sku}", self.lock_ttl)
            if not lock:
                raise ConcurrentModificationError()
        try:
            yield
        finally:
            if self.rlock and lock:
                self.rlock.unlock(lock)

    def _commit(self, product: Product) -> None:
        """提交事务；唯一约束冲突转换为 DUPLICATE_SKU"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_sku_violation(e):
                logger.warning(f"数据库唯一约束拦截重复 SKU: {product.sku}")
                raise DuplicateSkuError()
            raise
        self.db.refresh(product)

    @staticmethod
    def _check_paging(page: int, page_size: int) -> None:
        details = {}
        if page < 1:
            details["page"] = ["Page must be greater than or equal to 1"]
        if page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
            details["pageSize"] = [f"Page size must be between 1 and {settings.MAX_PAGE_SIZE}"]
        if details:
            raise CatalogValidationError("Invalid pagination parameters", details=details)

    def _build_page(self, products, page: int, page_size: int, total_count: int) -> ProductPageResponse:
        return ProductPageResponse(
            data=[to_product_response(p) for p in products],
            pagination=PaginationInfo(
                page=page,
                page_size=page_size,
                total_count=total_count,
                total_pages=math.ceil(total_count / page_size),
            ),
            metadata=ResponseMetadata(
                cached=False,
                source=self.db.get_bind().dialect.name,
            ),
        )
