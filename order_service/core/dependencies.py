"""依赖注入配置模块"""

import logging

from fastapi import Depends, Header

# 数据库会话依赖
from order_service.db.session import SessionLocal
from sqlalchemy.orm import Session

# Redis 依赖
from order_service.core.redis import redis_client, redlock

from order_service.services.access import Principal
from order_service.services.cart_service import CartService
from order_service.services.checkout_service import CheckoutCoordinator
from order_service.services.order_query import OrderQueryService
from order_service.services.order_status import OrderStatusController
from order_service.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


def get_redis():
    """获取同步 Redis 客户端，不可用时返回 None（降级为无缓存）"""
    try:
        redis_client.ping()
    except Exception as e:
        logger.warning(f"Redis 不可用，跳过缓存: {e}")
        return None
    return redis_client


def get_redlock():
    """获取 Redlock 分布式锁实例，未配置服务器时返回 None"""
    if not redlock.servers:
        return None
    return redlock


def get_db() -> Session:
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_principal(
    x_user_id: int = Header(..., alias="X-User-Id", gt=0),
    x_user_role: str = Header("customer", alias="X-User-Role"),
) -> Principal:
    """网关认证后透传的调用者身份"""
    return Principal(user_id=x_user_id, role=x_user_role)


def get_checkout_coordinator(
    db: Session = Depends(get_db),
    redis = Depends(get_redis),
    rlock = Depends(get_redlock)
) -> CheckoutCoordinator:
    return CheckoutCoordinator(db=db, redis=redis, rlock=rlock)


def get_stock_ledger(
    db: Session = Depends(get_db),
    redis = Depends(get_redis),
    rlock = Depends(get_redlock)
) -> StockLedger:
    return StockLedger(db=db, redis=redis, rlock=rlock)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_order_status_controller(db: Session = Depends(get_db)) -> OrderStatusController:
    return OrderStatusController(db)


def get_order_query_service(db: Session = Depends(get_db)) -> OrderQueryService:
    return OrderQueryService(db)


# 常用的依赖注入别名
DatabaseDep = Depends(get_db)
RedisDep = Depends(get_redis)
RedlockDep = Depends(get_redlock)
PrincipalDep = Depends(get_principal)
CheckoutDep = Depends(get_checkout_coordinator)
StockLedgerDep = Depends(get_stock_ledger)
CartServiceDep = Depends(get_cart_service)
OrderStatusDep = Depends(get_order_status_controller)
OrderQueryDep = Depends(get_order_query_service)
