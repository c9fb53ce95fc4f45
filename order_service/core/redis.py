"""Redis 客户端配置模块"""

from redis import Redis
from redlock import Redlock

from order_service.core.config import settings

# 统一的 Redis 配置
REDIS_URL = settings.redis_url

# 基础 Redis 客户端（库存缓存）
redis_client = Redis.from_url(REDIS_URL, decode_responses=True)


# Redlock 配置（支持单实例和多实例）
def create_redlock(redis_hosts: str = None) -> Redlock:
    """根据配置动态创建 Redlock 实例"""
    redis_hosts = redis_hosts or settings.REDIS_HOSTS or settings.REDIS_HOST

    servers = [
        {"host": host.strip(), "port": settings.REDIS_PORT, "db": settings.REDIS_DB}
        for host in redis_hosts.split(",")
        if host.strip()
    ]
    return Redlock(servers)


redlock = create_redlock()

# 导出
__all__ = [
    "redis_client",
    "redlock",
    "create_redlock",
    "REDIS_URL"
]
