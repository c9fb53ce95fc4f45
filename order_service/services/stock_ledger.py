"""库存账本实现"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional
import logging

from redis import Redis
from redis.exceptions import RedisError
from redlock import Redlock
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.core.config import settings
from order_service.core.errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    OrderServiceError,
    ValidationError,
)
from order_service.db.store import LedgerStore, translate_db_error
from order_service.models.stock_logs import StockLog, ChangeType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductSnapshot:
    """扣减成功后的商品快照，price 作为订单明细的价格快照"""
    product_id: int
    quantity: int
    price: Decimal
    stock_before: int
    stock_after: int


class StockLedger:
    """库存账本：stock_quantity 的唯一写入者

    所有扣减都在调用方的事务内完成：先对商品行加排他锁，再检查并扣减，
    只有外层事务提交后扣减才对其他事务可见。
    """

    def __init__(
        self,
        db: Session,
        redis: Redis = None,
        rlock: Redlock = None,
        lock_ttl_ms: int = None,
        cache_ttl: int = None
    ):
        self.db = db
        self.store = LedgerStore(db)
        self.redis = redis
        self.rlock = rlock
        self.lock_ttl_ms = lock_ttl_ms or settings.STOCK_LOCK_TTL_MS
        self.cache_ttl = cache_ttl or settings.STOCK_CACHE_TTL

    @staticmethod
    def cache_key(product_id: int) -> str:
        return f"stock:quantity:{product_id}"

    @staticmethod
    def lock_key(product_id: int) -> str:
        return f"lock:stock:{product_id}"

    # ==================== 分布式锁 ====================

    def acquire_locks(self, product_ids: Iterable[int]) -> list:
        """按商品ID升序获取分布式锁，任何一个失败则释放已获取的锁"""
        locks = []
        if not self.rlock:
            return locks

        for product_id in sorted(set(product_ids)):
            lock = self.rlock.lock(self.lock_key(product_id), self.lock_ttl_ms)
            if not lock:
                self.release_locks(locks)
                logger.warning(f"获取库存锁失败: product_id={product_id}")
                raise ConflictError(product_id=product_id)
            locks.append(lock)
        return locks

    def release_locks(self, locks: list) -> None:
        if not self.rlock:
            return
        for lock in locks:
            self.rlock.unlock(lock)

    # ==================== 扣减 ====================

    def reserve_and_decrement(
        self,
        product_id: int,
        quantity: int,
        txn: Optional[Session] = None
    ) -> ProductSnapshot:
        """校验并扣减库存（在外层事务内）"""
        if quantity is None or quantity <= 0:
            raise ValidationError("购买数量必须大于0", product_id=product_id)

        store = LedgerStore(txn) if txn is not None else self.store

        # 使用行级锁查询商品库存
        product = store.get_product_for_update(product_id)
        if product is None:
            raise NotFoundError("商品不存在", product_id=product_id)

        if product.stock_quantity < quantity:
            logger.warning(
                f"库存不足: product_id={product_id}, "
                f"requested={quantity}, available={product.stock_quantity}"
            )
            raise InsufficientStockError(product_id, quantity, product.stock_quantity)

        before = product.stock_quantity
        product.stock_quantity = before - quantity

        return ProductSnapshot(
            product_id=product_id,
            quantity=quantity,
            price=product.price,
            stock_before=before,
            stock_after=product.stock_quantity,
        )

    def record_checkout(
        self,
        order_id: int,
        snapshots: List[ProductSnapshot],
        txn: Optional[Session] = None
    ) -> None:
        """记录结算扣减流水（与扣减同一事务）"""
        db = txn if txn is not None else self.db
        for snapshot in snapshots:
            db.add(StockLog(
                product_id=snapshot.product_id,
                order_id=order_id,
                change_type=ChangeType.CHECKOUT,
                quantity=-snapshot.quantity,
                before_stock=snapshot.stock_before,
                after_stock=snapshot.stock_after,
                operator="checkout",
                source="checkout"
            ))

    # ==================== 人工调整 ====================

    def adjust_stock(self, product_id: int, delta: int, operator: str = None) -> ProductSnapshot:
        """人工调整库存（独立事务，同样走加锁校验）"""
        if delta == 0:
            raise ValidationError("调整数量不能为0")

        locks = self.acquire_locks([product_id])
        try:
            product = self.store.get_product_for_update(product_id)
            if product is None:
                raise NotFoundError("商品不存在", product_id=product_id)

            before = product.stock_quantity
            after = before + delta
            if after < 0:
                raise InsufficientStockError(product_id, -delta, before)

            product.stock_quantity = after
            self.db.add(StockLog(
                product_id=product_id,
                order_id=None,
                change_type=ChangeType.ADJUST,
                quantity=delta,
                before_stock=before,
                after_stock=after,
                operator=operator,
                source="admin"
            ))
            snapshot = ProductSnapshot(
                product_id=product_id,
                quantity=abs(delta),
                price=product.price,
                stock_before=before,
                stock_after=after,
            )

            self.db.commit()
            logger.info(f"库存调整成功: product_id={product_id}, {before} -> {after}, operator={operator}")
        except OrderServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"库存调整失败: {str(e)}", exc_info=True)
            raise translate_db_error(e) from e
        else:
            # 持锁期间写入已提交的库存
            self.refresh_cache([snapshot])
        finally:
            self.release_locks(locks)

        return snapshot

    # ==================== 查询与缓存 ====================

    def get_product_stock(self, product_id: int) -> int:
        """查询商品库存（带缓存）

        未命中时只用 SET NX 回填：若期间已有提交写入了新库存，
        读到的旧值不会覆盖它。Redis 故障时直接读数据库。
        """
        cache_key = self.cache_key(product_id)

        # 先查缓存
        if self.redis:
            try:
                cached = self.redis.get(cache_key)
            except RedisError as e:
                logger.warning(f"读取库存缓存失败: product_id={product_id}, error={e}")
                cached = None
            if cached is not None:
                logger.debug(f"Cache hit for product {product_id}")
                return int(cached)

        # 缓存未命中，查询数据库
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFoundError("商品不存在", product_id=product_id)
        stock = product.stock_quantity

        if self.redis:
            try:
                self.redis.set(cache_key, stock, ex=self.cache_ttl, nx=True)
                logger.debug(f"Cache filled for product {product_id}: {stock}")
            except RedisError as e:
                logger.warning(f"回填库存缓存失败: product_id={product_id}, error={e}")

        return stock

    def refresh_cache(self, snapshots: Iterable[ProductSnapshot]) -> None:
        """提交后把最新库存写入缓存

        事务已经提交，这里的任何 Redis 故障只记录告警，不向调用方抛出。
        """
        if not self.redis:
            return
        for snapshot in snapshots:
            cache_key = self.cache_key(snapshot.product_id)
            try:
                self.redis.setex(cache_key, self.cache_ttl, snapshot.stock_after)
                logger.debug(f"Cache refreshed for product {snapshot.product_id}: {snapshot.stock_after}")
            except RedisError as e:
                logger.warning(f"刷新库存缓存失败: product_id={snapshot.product_id}, error={e}")
