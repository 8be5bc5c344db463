import uuid

from sqlalchemy import (
    Column,
    Text,
    Integer,
    Boolean,
    Uuid,
    ForeignKey,
)
from sqlalchemy.orm import relationship
from product_catalog.db.base import Base


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    product_id = Column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="所属商品ID",
    )

    url = Column(
        Text,
        nullable=False,
        default="",
        comment="图片地址（不校验格式）",
    )

    alt = Column(
        Text,
        nullable=False,
        default="",
        comment="替代文本",
    )

    # 不限制主图数量，0 个或多个均合法
    primary = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="是否主图",
    )

    position = Column(
        Integer,
        nullable=False,
        default=0,
        comment="图片顺序",
    )

    product = relationship("Product", back_populates="images")
