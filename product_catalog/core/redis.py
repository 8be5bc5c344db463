"""Redis 客户端配置模块（SKU 写入分布式锁）"""

from redis.asyncio import Redis as AsyncRedis
from redlock import Redlock

from product_catalog.core.config import settings

REDIS_URL = settings.redis_url

# 仅用于启动时的连通性检查
async_redis = AsyncRedis.from_url(REDIS_URL, decode_responses=True)


# Redlock 配置（支持单实例和多实例）
def create_redlock():
    """根据配置动态创建 Redlock 实例，未启用时返回 None"""
    if not settings.SKU_LOCK_ENABLED:
        return None

    redis_hosts = settings.REDIS_HOSTS or settings.REDIS_HOST

    if "," in redis_hosts:  # 多实例模式
        servers = [
            {"host": host.strip(), "port": settings.REDIS_PORT, "db": settings.REDIS_DB}
            for host in redis_hosts.split(",")
        ]
    else:  # 单实例模式
        servers = [
            {"host": redis_hosts, "port": settings.REDIS_PORT, "db": settings.REDIS_DB}
        ]

    return Redlock(servers)

redlock = create_redlock()

# 导出
__all__ = [
    "async_redis",
    "redlock",
    "create_redlock",
    "REDIS_URL"
]
