"""依赖注入配置模块"""

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

# 数据库会话依赖
from product_catalog.db.session import SessionLocal
from product_catalog.core.config import settings

# Redis 分布式锁依赖
from product_catalog.core.redis import redlock

from product_catalog.services.product_service import ProductService


def get_db() -> Generator[Session, None, None]:
    """获取数据库会话（请求结束时关闭）"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_redlock():
    """获取 Redlock 分布式锁实例（未启用时为 None）"""
    return redlock


def get_current_user(
    user_id: Optional[str] = Header(
        None,
        alias=settings.USER_ID_HEADER,
        description="操作人标识（不做校验）",
    ),
) -> str:
    """从请求头读取操作人，缺省为系统用户"""
    return user_id or settings.DEFAULT_USER_ID


def get_product_service(
    db: Session = Depends(get_db),
    rlock = Depends(get_redlock)
) -> ProductService:
    """获取商品服务实例（依赖注入）"""
    return ProductService(db=db, rlock=rlock)


# 常用的依赖注入别名
DatabaseDep = Depends(get_db)
RedlockDep = Depends(get_redlock)
CurrentUserDep = Depends(get_current_user)
ProductServiceDep = Depends(get_product_service)
