import enum

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    TIMESTAMP,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from order_service.db.base import Base, BigIntPK, utcnow


# 1️ 订单状态枚举

class OrderStatus(str, enum.Enum):
    PENDING = "pending"          # 待处理（初始）
    PROCESSING = "processing"    # 处理中
    SHIPPED = "shipped"          # 已发货
    DELIVERED = "delivered"      # 已送达（终态）
    CANCELLED = "cancelled"      # 已取消（终态）


# 2️ 订单表

class Order(Base):
    __tablename__ = "orders"

    id = Column(
        BigIntPK,
        primary_key=True,
        autoincrement=True,
    )

    user_id = Column(
        BigInteger,
        nullable=False,
        index=True,
        comment="下单用户ID",
    )

    status = Column(
        Enum(
            OrderStatus,
            name="order_status_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
        comment="订单状态",
    )

    # 创建后不可修改
    total_amount = Column(
        Numeric(14, 2),
        nullable=False,
        comment="订单总额",
    )

    shipping_address = Column(
        Text,
        nullable=False,
        comment="收货地址",
    )

    payment_method = Column(
        String(64),
        nullable=False,
        comment="支付方式",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "total_amount >= 0",
            name="ck_orders_total_non_negative",
        ),
    )


# 3️ 订单明细表

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(
        BigIntPK,
        primary_key=True,
        autoincrement=True,
    )

    order_id = Column(
        BigInteger,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="订单ID",
    )

    # 只保存商品ID，不依赖商品的实时价格
    product_id = Column(
        BigInteger,
        nullable=False,
        comment="商品ID",
    )

    quantity = Column(
        Integer,
        nullable=False,
        comment="购买数量",
    )

    price = Column(
        Numeric(12, 2),
        nullable=False,
        comment="下单时价格快照",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_order_items_quantity_positive",
        ),
    )


# 4 高频查询优化索引

Index(
    "idx_orders_user_created_desc",
    Order.user_id,
    Order.created_at.desc(),
)

Index(
    "idx_orders_status",
    Order.status,
)
