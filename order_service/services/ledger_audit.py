"""账本一致性巡检：库存非负、订单总额等于明细之和"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from order_service.models.order import Order
from order_service.models.product import Product

logger = logging.getLogger(__name__)


@dataclass
class AuditReport:
    negative_stock: List[int] = field(default_factory=list)
    total_mismatches: List[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.negative_stock and not self.total_mismatches

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "negative_stock": self.negative_stock,
            "total_mismatches": self.total_mismatches,
        }


class LedgerAuditor:
    def __init__(self, db: Session):
        self.db = db

    def find_negative_stock(self) -> List[int]:
        return list(self.db.execute(
            select(Product.id).where(Product.stock_quantity < 0).order_by(Product.id)
        ).scalars().all())

    def find_total_mismatches(self, batch_size: int = 500) -> List[dict]:
        """逐批比对订单总额和明细合计（Python Decimal 计算，避免数据库浮点）"""
        mismatches = []
        last_id = 0
        while True:
            orders = self.db.execute(
                select(Order)
                .where(Order.id > last_id)
                .order_by(Order.id)
                .limit(batch_size)
            ).scalars().all()
            if not orders:
                break

            for order in orders:
                expected = sum(
                    (Decimal(item.price) * item.quantity for item in order.items),
                    Decimal("0"),
                )
                if Decimal(order.total_amount) != expected:
                    mismatches.append({
                        "order_id": order.id,
                        "total_amount": str(order.total_amount),
                        "items_total": str(expected),
                    })
            last_id = orders[-1].id

            if len(orders) < batch_size:
                break
        return mismatches

    def count_orders(self) -> int:
        return self.db.execute(select(func.count(Order.id))).scalar_one()

    def run(self, batch_size: int = 500) -> AuditReport:
        report = AuditReport(
            negative_stock=self.find_negative_stock(),
            total_mismatches=self.find_total_mismatches(batch_size),
        )
        if report.ok:
            logger.info(f"账本巡检通过，共检查 {self.count_orders()} 个订单")
        else:
            logger.error(
                f"账本巡检发现异常: 负库存商品 {len(report.negative_stock)} 个, "
                f"总额不一致订单 {len(report.total_mismatches)} 个"
            )
        return report
