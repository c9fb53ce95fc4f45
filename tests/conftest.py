"""测试配置和 fixtures"""
import os

# 测试环境不连接 PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal
from unittest.mock import Mock

import pytest
from redis import Redis
from redlock import Redlock
from sqlalchemy import create_engine, event, select

from order_service.db import init_db
from order_service.db.session import build_sessionmaker
from order_service.models import CartItem, Product


def create_serialized_sqlite_engine(path):
    """文件型 SQLite，写事务以 BEGIN IMMEDIATE 开始

    事务一开始就拿到写锁，并发写事务像持有行锁一样串行执行。
    """
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # 由 SQLAlchemy 负责发出 BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


@pytest.fixture
def engine(tmp_path):
    engine = create_serialized_sqlite_engine(tmp_path / "orders.db")
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def db_session(session_factory):
    """创建数据库会话"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mock_redis():
    """创建模拟 Redis 客户端"""
    redis_mock = Mock(spec=Redis)
    redis_mock.get.return_value = None
    redis_mock.setex.return_value = True
    redis_mock.set.return_value = True
    redis_mock.delete.return_value = 1
    return redis_mock


@pytest.fixture
def mock_redlock():
    """创建模拟 Redlock 分布式锁"""
    redlock_mock = Mock(spec=Redlock)
    redlock_mock.lock.side_effect = lambda resource, ttl: Mock(resource=resource)
    redlock_mock.unlock.return_value = None
    return redlock_mock


@pytest.fixture
def make_product(db_session):
    """创建商品"""
    def _make(price="10.00", stock=10, name="测试商品"):
        product = Product(name=name, price=Decimal(price), stock_quantity=stock)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def add_to_cart(db_session):
    """直接写入购物车行"""
    def _add(user_id, product, quantity):
        item = CartItem(user_id=user_id, product_id=product.id, quantity=quantity)
        db_session.add(item)
        db_session.commit()
        return item
    return _add


def stock_of(db, product_id):
    """绕过 identity map，直接读取数据库中的库存"""
    return db.execute(
        select(Product.stock_quantity).where(Product.id == product_id)
    ).scalar_one()


def cart_of(db, user_id):
    rows = db.execute(
        select(CartItem.product_id, CartItem.quantity)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.product_id)
    ).all()
    return [(row.product_id, row.quantity) for row in rows]
