from .base import Base
from .session import engine, SessionLocal


def init_db(bind=None):
    """创建所有数据表（不做迁移）"""
    # 导入模型以注册到 metadata
    from product_catalog import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


__all__ = ["Base", "engine", "SessionLocal", "init_db"]
