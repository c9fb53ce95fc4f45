import enum

from sqlalchemy import (
    BigInteger,
    Column,
    Enum,
    Index,
    Integer,
    String,
    TIMESTAMP,
    func,
)
from order_service.db.base import Base, BigIntPK, utcnow


# 1定义库存变更类型
class ChangeType(str, enum.Enum):
    CHECKOUT = "CHECKOUT"  # 结算扣减
    ADJUST = "ADJUST"      # 人工调整


# 2️库存流水表
class StockLog(Base):
    __tablename__ = "stock_logs"

    id = Column(
        BigIntPK,
        primary_key=True,
        autoincrement=True,
    )

    product_id = Column(
        BigInteger,
        nullable=False,
        index=True,
        comment="商品ID",
    )

    order_id = Column(
        BigInteger,
        nullable=True,
        index=True,
        comment="订单ID（人工调整时为空）",
    )

    change_type = Column(
        Enum(
            ChangeType,
            name="stock_change_type",
        ),
        nullable=False,
        comment="库存变更类型",
    )

    quantity = Column(
        Integer,
        nullable=False,
        comment="变更数量（扣减为负）",
    )

    before_stock = Column(
        Integer,
        nullable=False,
        comment="变更前库存",
    )

    after_stock = Column(
        Integer,
        nullable=False,
        comment="变更后库存",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    operator = Column(
        String(64),
        nullable=True,
        comment="操作人/服务名",
    )

    source = Column(
        String(50),
        nullable=True,
        comment="来源：checkout / admin",
    )


# 3️组合索引（高频查询优化）

Index(
    "idx_stock_logs_product_created_desc",
    StockLog.product_id,
    StockLog.created_at.desc(),
)
