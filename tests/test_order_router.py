"""订单 / 购物车 / 库存路由测试"""
import asyncio
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient
from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import cart_of, stock_of
from order_service.core.dependencies import get_db, get_redis, get_redlock
from order_service.main import app

CUSTOMER = {"X-User-Id": "1"}
OTHER = {"X-User-Id": "2"}
ADMIN = {"X-User-Id": "100", "X-User-Role": "admin"}


class TestOrderRouter:
    """路由测试类"""

    @pytest.fixture
    def client(self, session_factory):
        """创建测试客户端"""
        def override_get_db():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_redis] = lambda: None
        app.dependency_overrides[get_redlock] = lambda: None
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()

    @pytest.fixture
    def read(self, session_factory):
        """用独立会话读取，读完即释放写锁"""
        def _read(fn, *args):
            db = session_factory()
            try:
                return fn(db, *args)
            finally:
                db.close()
        return _read

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_checkout_flow(self, client, make_product, read):
        product_a = make_product(price="10.00", stock=5)
        product_b = make_product(price="5.00", stock=1)

        assert client.post("/api/v1/cart", json={"product_id": product_a.id, "quantity": 2}, headers=CUSTOMER).status_code == 200
        assert client.post("/api/v1/cart", json={"product_id": product_b.id, "quantity": 1}, headers=CUSTOMER).status_code == 200

        response = client.post(
            "/api/v1/orders",
            json={"shipping_address": "上海市", "payment_method": "card"},
            headers=CUSTOMER,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        # 金额以精确十进制字符串返回
        assert Decimal(data["total_amount"]) == Decimal("25.00")
        assert isinstance(data["total_amount"], str)
        assert data["status"] == "pending"
        assert len(data["items"]) == 2
        assert read(stock_of, product_a.id) == 3
        assert read(stock_of, product_b.id) == 0
        assert read(cart_of, 1) == []

        order_id = data["id"]
        assert client.get(f"/api/v1/orders/{order_id}", headers=CUSTOMER).status_code == 200
        assert client.get(f"/api/v1/orders/{order_id}", headers=ADMIN).status_code == 200
        assert client.get(f"/api/v1/orders/{order_id}", headers=OTHER).status_code == 403

        mine = client.get("/api/v1/orders", headers=CUSTOMER).json()["data"]
        assert [order["id"] for order in mine] == [order_id]
        assert client.get("/api/v1/orders", headers=OTHER).json()["data"] == []

    def test_checkout_empty_cart(self, client):
        response = client.post(
            "/api/v1/orders",
            json={"shipping_address": "上海市", "payment_method": "card"},
            headers=CUSTOMER,
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "empty_cart"
        assert body["retryable"] is False

    def test_checkout_insufficient_stock(self, client, make_product, add_to_cart, read):
        product = make_product(stock=0)
        add_to_cart(1, product, 1)

        response = client.post(
            "/api/v1/orders",
            json={"shipping_address": "上海市", "payment_method": "card"},
            headers=CUSTOMER,
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "insufficient_stock"
        assert body["details"] == {"product_id": product.id, "requested": 1, "available": 0}
        assert read(cart_of, 1) == [(product.id, 1)]

    def test_checkout_requires_identity(self, client):
        response = client.post("/api/v1/orders", json={"shipping_address": "a", "payment_method": "b"})
        assert response.status_code == 422

    def test_update_status_requires_admin(self, client, make_product, add_to_cart):
        product = make_product(stock=5)
        add_to_cart(1, product, 1)
        order_id = client.post(
            "/api/v1/orders",
            json={"shipping_address": "上海市", "payment_method": "card"},
            headers=CUSTOMER,
        ).json()["data"]["id"]

        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"}, headers=CUSTOMER)
        assert response.status_code == 403

        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"}, headers=ADMIN)
        assert response.status_code == 422
        assert response.json()["code"] == "invalid_transition"

        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "processing"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "processing"

    def test_update_status_missing_order(self, client):
        response = client.patch("/api/v1/orders/999/status", json={"status": "processing"}, headers=ADMIN)
        assert response.status_code == 404

    def test_list_all_orders_admin_only(self, client):
        assert client.get("/api/v1/orders/admin/all", headers=CUSTOMER).status_code == 403
        response = client.get("/api/v1/orders/admin/all", params={"status": "pending"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_cart_endpoints(self, client, make_product):
        product = make_product(price="2.50", stock=3)

        response = client.post("/api/v1/cart", json={"product_id": product.id, "quantity": 1}, headers=CUSTOMER)
        assert response.json()["data"]["price"] == "2.50"

        response = client.put("/api/v1/cart", json={"product_id": product.id, "quantity": 3}, headers=CUSTOMER)
        assert response.json()["data"]["quantity"] == 3

        response = client.put("/api/v1/cart", json={"product_id": product.id, "quantity": 4}, headers=CUSTOMER)
        assert response.status_code == 409

        cart = client.get("/api/v1/cart", headers=CUSTOMER).json()["data"]
        assert [(line["product_id"], line["quantity"]) for line in cart] == [(product.id, 3)]

        assert client.delete(f"/api/v1/cart/{product.id}", headers=CUSTOMER).status_code == 200
        assert client.delete(f"/api/v1/cart/{product.id}", headers=CUSTOMER).status_code == 404

        response = client.delete("/api/v1/cart", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["removed"] == 0

    def test_stock_endpoints(self, client, make_product, read):
        product = make_product(stock=3)

        response = client.get(f"/api/v1/stock/{product.id}")
        assert response.json()["stock_quantity"] == 3

        response = client.post(f"/api/v1/stock/{product.id}/adjust", json={"delta": 2}, headers=CUSTOMER)
        assert response.status_code == 403

        response = client.post(f"/api/v1/stock/{product.id}/adjust", json={"delta": -5}, headers=ADMIN)
        assert response.status_code == 409
        assert read(stock_of, product.id) == 3

        response = client.post(f"/api/v1/stock/{product.id}/adjust", json={"delta": 2}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["stock_quantity"] == 5
        assert response.json()["before_stock"] == 3

        assert client.get("/api/v1/stock/999").status_code == 404

    def test_checkout_async(self, client):
        loops = []

        def delay(*args):
            # 提交任务的阻塞调用应在线程池中执行，而不是事件循环里
            try:
                loops.append(asyncio.get_running_loop())
            except RuntimeError:
                loops.append(None)
            return Mock(id="task-1")

        task_mock = Mock()
        task_mock.delay.side_effect = delay

        with patch("order_service.routers.order_router.celery_checkout_task", task_mock):
            response = client.post(
                "/api/v1/orders/async",
                json={"shipping_address": "上海市", "payment_method": "card"},
                headers=CUSTOMER,
            )

        assert response.status_code == 200
        assert response.json()["task_id"] == "task-1"
        task_mock.delay.assert_called_once_with(1, "上海市", "card")
        assert loops == [None]

    def test_checkout_survives_cache_outage(self, client, make_product, add_to_cart, read):
        """缓存故障不影响已提交的结算结果"""
        product = make_product(price="10.00", stock=5)
        add_to_cart(1, product, 2)
        failing_redis = Mock(spec=Redis)
        failing_redis.setex.side_effect = RedisConnectionError("down")
        app.dependency_overrides[get_redis] = lambda: failing_redis

        response = client.post(
            "/api/v1/orders",
            json={"shipping_address": "上海市", "payment_method": "card"},
            headers=CUSTOMER,
        )

        assert response.status_code == 201
        assert Decimal(response.json()["data"]["total_amount"]) == Decimal("20.00")
        assert read(stock_of, product.id) == 3
        assert read(cart_of, 1) == []

    def test_checkout_task_status(self, client):
        task_mock = Mock()
        task_mock.AsyncResult.return_value = Mock(state="SUCCESS", result={"success": True, "order_id": 5})

        with patch("order_service.routers.order_router.celery_checkout_task", task_mock):
            response = client.get("/api/v1/orders/tasks/task-1")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "SUCCESS"
        assert body["result"]["order_id"] == 5
