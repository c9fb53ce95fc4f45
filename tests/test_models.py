"""模型单元测试"""
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from order_service.models import CartItem, Order, OrderItem, OrderStatus, Product


class TestModels:
    """数据模型测试类"""

    def test_product_model(self, db_session):
        """测试商品模型"""
        product = Product(name="测试商品", price=Decimal("19.99"), stock_quantity=3, shop_id=1, category_id=2)
        db_session.add(product)
        db_session.commit()

        db_session.expire_all()
        saved = db_session.get(Product, product.id)
        assert saved.id is not None
        assert saved.price == Decimal("19.99")
        assert saved.stock_quantity == 3
        assert saved.created_at is not None
        assert saved.updated_at is not None

    def test_negative_stock_violates_check(self, db_session):
        """库存不能为负"""
        db_session.add(Product(name="负库存", price=Decimal("1.00"), stock_quantity=-1))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_cart_item_unique_per_user_and_product(self, db_session, make_product):
        """同一用户同一商品只能有一行"""
        product = make_product()
        db_session.add(CartItem(user_id=1, product_id=product.id, quantity=1))
        db_session.commit()

        db_session.add(CartItem(user_id=1, product_id=product.id, quantity=2))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_cart_item_quantity_positive(self, db_session, make_product):
        product = make_product()
        db_session.add(CartItem(user_id=1, product_id=product.id, quantity=0))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_order_relationships(self, db_session):
        """测试订单与明细关系"""
        order = Order(
            user_id=1,
            total_amount=Decimal("7.50"),
            shipping_address="地址",
            payment_method="card",
            items=[
                OrderItem(product_id=1, quantity=1, price=Decimal("2.50")),
                OrderItem(product_id=2, quantity=2, price=Decimal("2.50")),
            ],
        )
        db_session.add(order)
        db_session.commit()

        db_session.expire_all()
        saved = db_session.get(Order, order.id)
        assert saved.status == OrderStatus.PENDING
        assert len(saved.items) == 2
        assert all(item.order_id == saved.id for item in saved.items)
        assert all(item.created_at is not None for item in saved.items)
