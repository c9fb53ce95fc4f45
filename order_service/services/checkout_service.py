"""结算协调器：购物车 → 订单 + 库存扣减，单事务全有或全无"""

from typing import Optional
import logging

from redis import Redis
from redlock import Redlock
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.core.config import settings
from order_service.core.errors import EmptyCartError, OrderServiceError, ValidationError
from order_service.db.store import LedgerStore, translate_db_error
from order_service.models.order import Order
from order_service.services.cart_service import CartClearer
from order_service.services.order_factory import OrderFactory
from order_service.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class CheckoutCoordinator:
    """结算核心服务类

    一次 checkout 只使用一个数据库事务：
    读取购物车 → 逐行加锁校验扣减库存 → 构建订单和明细 → 清空购物车 → 提交。
    任何一步失败都整体回滚，不做补偿写入，也不自动重试。
    """

    def __init__(
        self,
        db: Session,
        redis: Redis = None,
        rlock: Redlock = None,
        timeout_ms: Optional[int] = None,
        ledger: StockLedger = None,
        factory: OrderFactory = None,
        clearer: CartClearer = None
    ):
        self.db = db
        self.store = LedgerStore(db)
        self.ledger = ledger or StockLedger(db, redis, rlock)
        self.factory = factory or OrderFactory()
        self.clearer = clearer or CartClearer()
        self.timeout_ms = settings.CHECKOUT_TIMEOUT_MS if timeout_ms is None else timeout_ms

    def checkout(self, user_id: int, shipping_address: str, payment_method: str) -> Order:
        """把用户购物车转换为订单，返回已提交的订单（含明细）"""
        shipping_address = (shipping_address or "").strip()
        payment_method = (payment_method or "").strip()
        if not shipping_address:
            raise ValidationError("收货地址不能为空")
        if not payment_method:
            raise ValidationError("支付方式不能为空")

        locks = []
        try:
            self.store.set_transaction_timeout(self.timeout_ms)

            # 事务开始时读取购物车快照并锁住购物车行
            cart = self.store.get_cart_snapshot(user_id, for_update=True)
            if not cart:
                raise EmptyCartError()

            locks = self.ledger.acquire_locks(line.product_id for line in cart)

            # 快照已按商品ID升序，行锁顺序固定，避免死锁
            results = [
                self.ledger.reserve_and_decrement(line.product_id, line.quantity, self.db)
                for line in cart
            ]

            order = self.factory.build(
                user_id, cart, shipping_address, payment_method, results
            )
            self.db.add(order)
            self.db.flush()

            self.ledger.record_checkout(order.id, results, self.db)
            self.clearer.clear(user_id, self.db)

            self.db.commit()
        except EmptyCartError:
            self.db.rollback()
            logger.warning(f"结算失败，购物车为空: user_id={user_id}")
            raise
        except OrderServiceError as e:
            self.db.rollback()
            logger.warning(f"结算失败: user_id={user_id}, code={e.code}, details={e.details}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"结算事务失败: user_id={user_id}, error={str(e)}", exc_info=True)
            raise translate_db_error(e) from e
        else:
            # 提交后、释放锁前写入最新库存，缓存故障不影响已提交的订单
            self.ledger.refresh_cache(results)
        finally:
            self.ledger.release_locks(locks)

        logger.info(
            f"结算成功: order_id={order.id}, user_id={user_id}, "
            f"total_amount={order.total_amount}, items={len(order.items)}"
        )
        return order
