"""订单状态流转"""

from datetime import datetime, timezone
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.core.config import settings
from order_service.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    OrderServiceError,
    ValidationError,
)
from order_service.db.store import LedgerStore, translate_db_error
from order_service.models.order import Order, OrderStatus
from order_service.services.access import Principal, can_update_order_status, require

logger = logging.getLogger(__name__)


# pending → processing → shipped → delivered；pending / processing 可取消
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current: OrderStatus, target: OrderStatus, strict: bool = True) -> bool:
    if not strict:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("未知的订单状态", status=value)


class OrderStatusController:
    def __init__(self, db: Session, strict: bool = None):
        self.db = db
        self.store = LedgerStore(db)
        self.strict = settings.STRICT_STATUS_TRANSITIONS if strict is None else strict

    def update_status(self, order_id: int, new_status, principal: Principal) -> Order:
        require(can_update_order_status(principal), "只有管理员可以修改订单状态")
        new_status = parse_status(new_status)

        try:
            order = self.store.get_order(order_id, for_update=True)
            if order is None:
                raise NotFoundError("订单不存在", order_id=order_id)

            current = order.status
            if not can_transition(current, new_status, self.strict):
                raise InvalidTransitionError(
                    f"订单状态不允许从 {current.value} 变更为 {new_status.value}",
                    order_id=order_id,
                    current=current.value,
                    target=new_status.value,
                )

            order.status = new_status
            order.updated_at = datetime.now(timezone.utc)
            self.db.commit()
        except OrderServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"更新订单状态失败: order_id={order_id}, error={str(e)}")
            raise translate_db_error(e) from e

        logger.info(
            f"订单状态更新: order_id={order_id}, {current.value} -> {new_status.value}, "
            f"operator={principal.user_id}"
        )
        return order
