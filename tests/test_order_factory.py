"""订单构建测试"""
from decimal import Decimal

import pytest

from order_service.core.errors import EmptyCartError, ValidationError
from order_service.db.store import CartLine
from order_service.models import OrderStatus
from order_service.services.order_factory import OrderFactory, order_total, to_decimal
from order_service.services.stock_ledger import ProductSnapshot


def snapshot(product_id, quantity, price):
    return ProductSnapshot(
        product_id=product_id,
        quantity=quantity,
        price=Decimal(price),
        stock_before=100,
        stock_after=100 - quantity,
    )


class TestOrderFactory:

    def test_build_order(self):
        cart = [CartLine(1, 2), CartLine(2, 1)]
        results = [snapshot(2, 1, "5.00"), snapshot(1, 2, "10.00")]

        order = OrderFactory().build(7, cart, "地址", "card", results)

        assert order.user_id == 7
        assert order.status == OrderStatus.PENDING
        assert order.total_amount == Decimal("25.00")
        assert order.shipping_address == "地址"
        assert order.payment_method == "card"
        assert {(item.product_id, item.quantity, item.price) for item in order.items} == {
            (1, 2, Decimal("10.00")),
            (2, 1, Decimal("5.00")),
        }

    def test_many_small_prices_sum_exactly(self):
        cart = [CartLine(i, 3) for i in range(1, 11)]
        results = [snapshot(i, 3, "0.10") for i in range(1, 11)]

        order = OrderFactory().build(1, cart, "地址", "card", results)

        assert order.total_amount == Decimal("3.00")

    def test_empty_cart(self):
        with pytest.raises(EmptyCartError):
            OrderFactory().build(1, [], "地址", "card", [])

    def test_missing_line_result(self):
        with pytest.raises(ValidationError):
            OrderFactory().build(1, [CartLine(1, 1), CartLine(2, 1)], "地址", "card", [snapshot(1, 1, "1.00")])

    def test_quantity_mismatch(self):
        with pytest.raises(ValidationError):
            OrderFactory().build(1, [CartLine(1, 2)], "地址", "card", [snapshot(1, 1, "1.00")])

    def test_to_decimal_rejects_float(self):
        with pytest.raises(ValidationError):
            to_decimal(0.1)

    def test_to_decimal_accepts_str_and_int(self):
        assert to_decimal("19.99") == Decimal("19.99")
        assert to_decimal(3) == Decimal("3")

    def test_order_total_empty(self):
        assert order_total([]) == Decimal("0")
