"""商品目录示例数据初始化脚本"""

import argparse
import logging
from decimal import Decimal

from sqlalchemy import select

from product_catalog.db import SessionLocal, init_db
from product_catalog.models.product import Product
from product_catalog.schemas.product import ProductCreateRequest
from product_catalog.services.product_service import ProductService

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SEED_USER = "seed_job"

SAMPLE_PRODUCTS = [
    {
        "name": "Laptop",
        "description": "High-performance laptop for developers",
        "price": Decimal("999.99"),
        "category": "Electronics",
        "stock_quantity": 50,
        "sku": "LAPTOP-001",
        "attributes": {"brand": "Contoso", "ram": "32GB"},
        "images": [{"url": "https://example.com/img/laptop.jpg", "alt": "Laptop", "primary": True}],
    },
    {
        "name": "Wireless Mouse",
        "description": "Ergonomic wireless mouse with extended battery",
        "price": Decimal("29.99"),
        "category": "Electronics",
        "stock_quantity": 200,
        "sku": "MOUSE-001",
    },
    {
        "name": "USB-C Hub",
        "description": "Multi-port USB-C hub with HDMI and SD card reader",
        "price": Decimal("49.99"),
        "category": "Electronics",
        "stock_quantity": 120,
        "sku": "HUB-001",
    },
    {
        "name": "Mechanical Keyboard",
        "description": "RGB mechanical keyboard with hot-swappable switches",
        "price": Decimal("149.99"),
        "category": "Electronics",
        "stock_quantity": 75,
        "sku": "KB-001",
        "attributes": {"layout": "ANSI", "switches": "brown"},
    },
    {
        "name": "Monitor Stand",
        "description": "Adjustable monitor stand with storage drawer",
        "price": Decimal("39.99"),
        "category": "Office",
        "stock_quantity": 0,
        "sku": "STAND-001",
    },
]


def run_seed(db, dry_run: bool = False) -> int:
    """写入示例商品，已存在的 SKU 跳过

    Args:
        db: 数据库会话
        dry_run: 是否为试运行模式（只统计不写入）

    Returns:
        新增（或将新增）的商品数量
    """
    existing = set(db.execute(select(Product.sku)).scalars().all())
    pending = [item for item in SAMPLE_PRODUCTS if item["sku"] not in existing]

    if dry_run:
        logger.info(f"试运行模式：{len(pending)} 个示例商品待写入")
        return len(pending)

    service = ProductService(db)
    for item in pending:
        service.create_product(ProductCreateRequest(**item), SEED_USER)

    logger.info(f"示例数据写入完成：新增 {len(pending)} 个商品，跳过 {len(SAMPLE_PRODUCTS) - len(pending)} 个")
    return len(pending)


def main(argv=None):
    """主函数"""
    parser = argparse.ArgumentParser(description='商品目录示例数据初始化工具')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='试运行模式，只统计不写入'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    init_db()
    db = SessionLocal()
    try:
        result = run_seed(db, args.dry_run)
        if args.dry_run:
            print(f"试运行结果：{result} 个商品待写入")
        else:
            print(f"写入完成：新增 {result} 个商品")
    except Exception as e:
        logger.error(f"示例数据写入失败: {str(e)}")
        db.rollback()
        return 1
    finally:
        db.close()

    return 0

if __name__ == "__main__":
    exit(main())
