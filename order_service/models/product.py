from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Index,
    Integer,
    Numeric,
    String,
    TIMESTAMP,
    func,
)
from order_service.db.base import Base, BigIntPK, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(
        BigIntPK,
        primary_key=True,
        autoincrement=True,
    )

    name = Column(
        String(255),
        nullable=False,
        comment="商品名称",
    )

    price = Column(
        Numeric(12, 2),
        nullable=False,
        comment="当前售价（定点小数）",
    )

    # 只允许通过 StockLedger 的加锁写入修改
    stock_quantity = Column(
        Integer,
        nullable=False,
        server_default="0",
        comment="当前可售库存",
    )

    shop_id = Column(
        BigInteger,
        nullable=True,
        index=True,
        comment="店铺ID",
    )

    category_id = Column(
        BigInteger,
        nullable=True,
        index=True,
        comment="分类ID",
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
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "stock_quantity >= 0",
            name="ck_products_stock_non_negative",
        ),
        CheckConstraint(
            "price >= 0",
            name="ck_products_price_non_negative",
        ),
    )


Index(
    "idx_products_name",
    Product.name,
)
