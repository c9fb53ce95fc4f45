"""订单相关的 Celery 任务"""

from celery_app import app
from order_service.core.errors import OrderServiceError
from order_service.core.redis import redis_client, redlock
from order_service.db.session import SessionLocal
from order_service.services.checkout_service import CheckoutCoordinator
from order_service.services.ledger_audit import LedgerAuditor
import logging

logger = logging.getLogger(__name__)

MAX_CHECKOUT_RETRIES = 3


@app.task(name='tasks.orders.checkout', bind=True, max_retries=MAX_CHECKOUT_RETRIES)
def checkout_order(self, user_id: int, shipping_address: str, payment_method: str):
    """异步结算

    结算核心不做重试；这里作为调用方，对可重试错误（冲突、存储故障）
    做有限次数的退避重试，业务错误直接返回失败结果。

    Args:
        user_id: 用户ID
        shipping_address: 收货地址
        payment_method: 支付方式
    """
    db = SessionLocal()
    try:
        coordinator = CheckoutCoordinator(db, redis_client, redlock)
        order = coordinator.checkout(user_id, shipping_address, payment_method)
        logger.info(f"异步结算成功: user_id={user_id}, order_id={order.id}")
        return {
            "success": True,
            "order_id": order.id,
            "status": order.status.value,
            "total_amount": str(order.total_amount),
        }
    except OrderServiceError as e:
        if e.retryable and self.request.retries < MAX_CHECKOUT_RETRIES:
            logger.warning(f"异步结算冲突，稍后重试: user_id={user_id}, code={e.code}")
            raise self.retry(exc=e, countdown=2 ** self.request.retries)
        logger.warning(f"异步结算失败: user_id={user_id}, code={e.code}")
        return e.to_dict()
    finally:
        db.close()


@app.task(name='tasks.orders.audit_ledger')
def audit_ledger(batch_size: int = 500):
    """账本一致性巡检

    Args:
        batch_size: 每批检查的订单数量

    Returns:
        巡检报告
    """
    db = SessionLocal()
    try:
        report = LedgerAuditor(db).run(batch_size)
        return report.to_dict()
    except Exception as e:
        logger.error(f"账本巡检任务执行失败: {str(e)}")
        raise
    finally:
        db.close()


# 导出任务
__all__ = [
    'checkout_order',
    'audit_ledger',
]
