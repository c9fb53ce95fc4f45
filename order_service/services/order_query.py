"""订单查询（归属和角色校验在这一层完成）"""

from typing import List, Optional

from sqlalchemy.orm import Session

from order_service.core.errors import NotFoundError
from order_service.db.store import LedgerStore
from order_service.models.order import Order, OrderStatus
from order_service.services.access import (
    Principal,
    can_list_all_orders,
    can_view_order,
    require,
)


class OrderQueryService:
    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)

    def get_order(self, order_id: int, principal: Principal) -> Order:
        order = self.store.get_order(order_id)
        if order is None:
            raise NotFoundError("订单不存在", order_id=order_id)
        require(can_view_order(principal, order.user_id), "无权查看该订单")
        return order

    def list_my_orders(self, principal: Principal, limit: int = 50, offset: int = 0) -> List[Order]:
        return self.store.list_orders_for_user(principal.user_id, limit, offset)

    def list_all_orders(
        self,
        principal: Principal,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Order]:
        require(can_list_all_orders(principal), "只有管理员可以查看全部订单")
        return self.store.list_orders(status, limit, offset)
