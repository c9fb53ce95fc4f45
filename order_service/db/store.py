"""持久化原语（Ledger Store）

订单核心通过这里读写商品、购物车和订单；事务的开启、提交和回滚
由持有同一个 Session 的调用方负责。
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.core.errors import ConflictError, InternalError, OrderServiceError
from order_service.models.cart_item import CartItem
from order_service.models.order import Order, OrderStatus
from order_service.models.product import Product

logger = logging.getLogger(__name__)

# 锁超时 / 死锁 / 序列化失败 / 语句超时
CONFLICT_SQLSTATES = {"40001", "40P01", "55P03", "57014"}


@dataclass(frozen=True)
class CartLine:
    """购物车快照中的一行"""
    product_id: int
    quantity: int


def translate_db_error(exc: SQLAlchemyError) -> OrderServiceError:
    """把数据库异常归类为 ConflictError（可重试）或 InternalError"""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in CONFLICT_SQLSTATES or "database is locked" in str(orig or exc):
        return ConflictError(sqlstate=sqlstate)
    return InternalError()


class LedgerStore:
    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    def set_transaction_timeout(self, timeout_ms: int) -> None:
        """为当前事务设置锁等待和语句超时（仅 PostgreSQL）"""
        if not timeout_ms or self.dialect != "postgresql":
            return
        timeout_ms = int(timeout_ms)
        self.db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
        self.db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))

    def get_cart_snapshot(self, user_id: int, for_update: bool = False) -> List[CartLine]:
        stmt = (
            select(CartItem.product_id, CartItem.quantity)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.product_id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        rows = self.db.execute(stmt).all()
        return [CartLine(product_id=row.product_id, quantity=row.quantity) for row in rows]

    def get_cart_items(self, user_id: int) -> List[CartItem]:
        return self.db.execute(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
        ).scalars().all()

    def get_cart_item(self, user_id: int, product_id: int) -> Optional[CartItem]:
        return self.db.execute(
            select(CartItem)
            .where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id
            )
            .with_for_update()
        ).scalar_one_or_none()

    def delete_cart_items(self, user_id: int, product_id: Optional[int] = None) -> int:
        stmt = delete(CartItem).where(CartItem.user_id == user_id)
        if product_id is not None:
            stmt = stmt.where(CartItem.product_id == product_id)
        return self.db.execute(stmt).rowcount or 0

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def get_product_for_update(self, product_id: int) -> Optional[Product]:
        """行级排他锁读取商品，锁持有到当前事务结束"""
        return self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_order(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders_for_user(self, user_id: int, limit: int = 50, offset: int = 0) -> List[Order]:
        return self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all()

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Order]:
        stmt = select(Order)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        return self.db.execute(
            stmt.order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all()
