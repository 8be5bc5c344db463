# Models
from .product import Product, ProductStatus
from .product_images import ProductImage

__all__ = [
    "Product",
    "ProductStatus",
    "ProductImage",
]
