import enum
import uuid

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Text,
    TIMESTAMP,
    Enum,
    Uuid,
    Index,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.ext.orderinglist import ordering_list
from product_catalog.db.base import Base


# 1️ 商品状态枚举

class ProductStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"              # 在售
    INACTIVE = "INACTIVE"          # 下架（软删除）
    DISCONTINUED = "DISCONTINUED"  # 停产


# 2️ 商品表（聚合根）

class Product(Base):
    __tablename__ = "products"

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name = Column(
        String(100),
        nullable=False,
        comment="商品名称",
    )

    description = Column(
        String(500),
        nullable=False,
        default="",
        comment="商品描述",
    )

    price = Column(
        Numeric(18, 2),
        nullable=False,
        comment="单价",
    )

    category = Column(
        String(50),
        nullable=False,
        comment="分类",
    )

    stock_quantity = Column(
        Integer,
        nullable=False,
        default=0,
        comment="库存数量",
    )

    sku = Column(
        String(50),
        nullable=False,
        comment="商品唯一SKU",
    )

    # 自由属性，JSON 文本存储
    attributes_json = Column(
        Text,
        nullable=False,
        default="{}",
        comment="扩展属性（JSON）",
    )

    status = Column(
        Enum(
            ProductStatus,
            name="product_status_type",
        ),
        nullable=False,
        default=ProductStatus.ACTIVE,
        comment="商品状态",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
    )

    created_by = Column(
        Text,
        nullable=False,
        default="",
        comment="创建人",
    )

    updated_by = Column(
        Text,
        nullable=False,
        default="",
        comment="最后修改人",
    )

    images = relationship(
        "ProductImage",
        back_populates="product",
        order_by="ProductImage.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    # SKU 全局唯一，数据库约束为最终保障
    __table_args__ = (
        UniqueConstraint("sku", name="uq_products_sku"),
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )


# 3️ 排序字段索引

Index(
    "idx_products_name",
    Product.name,
)

Index(
    "idx_products_category",
    Product.category,
)
