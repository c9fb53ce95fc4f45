"""购物车服务"""

from typing import List
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.core.errors import (
    InsufficientStockError,
    NotFoundError,
    OrderServiceError,
    ValidationError,
)
from order_service.db.store import LedgerStore, translate_db_error
from order_service.models.cart_item import CartItem

logger = logging.getLogger(__name__)


class CartClearer:
    """清空用户购物车（在调用方事务内）"""

    def clear(self, user_id: int, txn: Session) -> int:
        removed = LedgerStore(txn).delete_cart_items(user_id)
        logger.debug(f"Cart cleared: user_id={user_id}, removed={removed}")
        return removed


class CartService:
    """购物车增删改查，每个操作一个事务"""

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)

    def get_cart(self, user_id: int) -> List[CartItem]:
        return self.store.get_cart_items(user_id)

    def add_item(self, user_id: int, product_id: int, quantity: int) -> CartItem:
        """加入购物车，已有同商品时累加数量"""
        self._check_quantity(quantity)
        try:
            product = self.store.get_product(product_id)
            if product is None:
                raise NotFoundError("商品不存在", product_id=product_id)

            item = self.store.get_cart_item(user_id, product_id)
            new_quantity = quantity + (item.quantity if item else 0)
            # 加购时只做软校验，真正的扣减在结算时加锁完成
            if product.stock_quantity < new_quantity:
                raise InsufficientStockError(product_id, new_quantity, product.stock_quantity)

            if item is None:
                item = CartItem(user_id=user_id, product_id=product_id, quantity=new_quantity)
                self.db.add(item)
            else:
                item.quantity = new_quantity

            self.db.commit()
            logger.info(f"加入购物车: user_id={user_id}, product_id={product_id}, quantity={new_quantity}")
            return item
        except OrderServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"加入购物车失败: {str(e)}")
            raise translate_db_error(e) from e

    def update_quantity(self, user_id: int, product_id: int, quantity: int) -> CartItem:
        self._check_quantity(quantity)
        try:
            item = self.store.get_cart_item(user_id, product_id)
            if item is None:
                raise NotFoundError("购物车中没有该商品", product_id=product_id)

            product = self.store.get_product(product_id)
            if product is None:
                raise NotFoundError("商品不存在", product_id=product_id)
            if product.stock_quantity < quantity:
                raise InsufficientStockError(product_id, quantity, product.stock_quantity)

            item.quantity = quantity
            self.db.commit()
            return item
        except OrderServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"更新购物车失败: {str(e)}")
            raise translate_db_error(e) from e

    def remove_item(self, user_id: int, product_id: int) -> None:
        try:
            removed = self.store.delete_cart_items(user_id, product_id)
            if not removed:
                raise NotFoundError("购物车中没有该商品", product_id=product_id)
            self.db.commit()
        except OrderServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e) from e

    def clear(self, user_id: int) -> int:
        try:
            removed = CartClearer().clear(user_id, self.db)
            self.db.commit()
            return removed
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e) from e

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity is None or quantity <= 0:
            raise ValidationError("购买数量必须大于0")
