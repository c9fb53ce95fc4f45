"""订单聚合构建"""

from decimal import Decimal
from typing import Iterable, List, Sequence

from order_service.core.errors import EmptyCartError, ValidationError
from order_service.db.store import CartLine
from order_service.models.order import Order, OrderItem, OrderStatus
from order_service.services.stock_ledger import ProductSnapshot


def to_decimal(value) -> Decimal:
    """金额统一转成 Decimal，拒绝二进制浮点数"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise ValidationError("金额不能使用浮点数", value=repr(value))
    return Decimal(str(value))


def order_total(lines: Iterable) -> Decimal:
    """Σ price × quantity，精确十进制求和"""
    return sum(
        (to_decimal(line.price) * line.quantity for line in lines),
        Decimal("0"),
    )


class OrderFactory:
    """根据购物车快照和库存扣减结果构建订单（订单头 + 明细）"""

    def build(
        self,
        user_id: int,
        cart_snapshot: Sequence[CartLine],
        shipping_address: str,
        payment_method: str,
        line_results: List[ProductSnapshot]
    ) -> Order:
        if not cart_snapshot:
            raise EmptyCartError()

        results = {result.product_id: result for result in line_results}
        items = []
        for line in cart_snapshot:
            result = results.get(line.product_id)
            if result is None or result.quantity != line.quantity:
                raise ValidationError(
                    "购物车商品与库存扣减结果不一致",
                    product_id=line.product_id
                )
            items.append(OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                price=to_decimal(result.price),
            ))

        return Order(
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_amount=order_total(items),
            shipping_address=shipping_address,
            payment_method=payment_method,
            items=items,
        )
