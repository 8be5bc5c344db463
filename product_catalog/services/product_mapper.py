"""商品响应映射（无副作用）"""

import json
import logging
from typing import Dict, Optional

from product_catalog.models.product import Product
from product_catalog.schemas.product import ProductImageSchema, ProductResponse

logger = logging.getLogger(__name__)


def serialize_attributes(attributes: Optional[Dict[str, str]]) -> str:
    """属性映射 -> 存储用 JSON 文本"""
    return json.dumps(attributes or {}, ensure_ascii=False)


def deserialize_attributes(raw: Optional[str], product_id=None) -> Dict[str, str]:
    """存储的 JSON 文本 -> 属性映射

    数据缺失时返回空映射；数据损坏时记录告警并返回空映射。
    """
    if not raw:
        return {}

    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"商品属性数据损坏，按空属性返回: product_id={product_id}, error={e}")
        return {}

    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        logger.warning(f"商品属性格式不合法，按空属性返回: product_id={product_id}")
        return {}

    return value


def to_product_response(product: Product) -> ProductResponse:
    """ORM 商品 -> 对外响应"""
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description or "",
        price=product.price,
        category=product.category,
        stock_quantity=product.stock_quantity,
        sku=product.sku,
        images=[
            ProductImageSchema(url=image.url, alt=image.alt, primary=image.primary)
            for image in product.images
        ],
        attributes=deserialize_attributes(product.attributes_json, product.id),
        status=product.status.value,
        created_at=product.created_at,
        updated_at=product.updated_at,
        created_by=product.created_by,
        updated_by=product.updated_by,
    )
