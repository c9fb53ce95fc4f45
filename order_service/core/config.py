import os
from typing import Optional

from pydantic_settings import BaseSettings


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseSettings):
    # 数据库配置
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "123456")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "mydb")
    # 完整连接串（设置后优先使用）
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")

    # Redis 配置
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_HOSTS: str = os.getenv("REDIS_HOSTS", "")

    # 结算事务配置
    CHECKOUT_TIMEOUT_MS: int = int(os.getenv("CHECKOUT_TIMEOUT_MS", "5000"))
    STOCK_LOCK_TTL_MS: int = int(os.getenv("STOCK_LOCK_TTL_MS", "10000"))
    STOCK_CACHE_TTL: int = int(os.getenv("STOCK_CACHE_TTL", "300"))

    # 订单状态流转：严格状态机 / 任意流转
    STRICT_STATUS_TRANSITIONS: bool = _env_bool("STRICT_STATUS_TRANSITIONS", "true")
    ADMIN_ROLE: str = os.getenv("ADMIN_ROLE", "admin")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


settings = Settings()
