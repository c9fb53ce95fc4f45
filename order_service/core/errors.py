"""订单核心错误类型

服务层只抛出这里定义的异常，HTTP 层在 main.py 中统一映射为响应。
retryable 标记调用方是否可以安全重试（核心本身从不自动重试）。
"""

from typing import Any, Dict, Optional


class OrderServiceError(Exception):
    """订单服务异常基类"""

    code = "order_error"
    status_code = 500
    retryable = False
    default_message = "订单服务异常"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "success": False,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(OrderServiceError):
    """输入不合法（如数量非正数、地址为空）"""

    code = "validation_error"
    status_code = 422
    default_message = "请求参数不合法"


class InvalidTransitionError(ValidationError):
    """订单状态流转不被允许"""

    code = "invalid_transition"
    default_message = "订单状态不允许此流转"


class NotFoundError(OrderServiceError):
    code = "not_found"
    status_code = 404
    default_message = "资源不存在"


class InsufficientStockError(OrderServiceError):
    """请求数量超过可用库存"""

    code = "insufficient_stock"
    status_code = 409
    default_message = "库存不足"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            None,
            product_id=product_id,
            requested=requested,
            available=available,
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class EmptyCartError(OrderServiceError):
    code = "empty_cart"
    status_code = 400
    default_message = "购物车为空"


class AuthorizationError(OrderServiceError):
    code = "forbidden"
    status_code = 403
    default_message = "没有权限执行此操作"


class ConflictError(OrderServiceError):
    """事务因锁竞争或超时被中止"""

    code = "conflict"
    status_code = 409
    retryable = True
    default_message = "库存操作冲突，请稍后重试"


class InternalError(OrderServiceError):
    """存储或传输层故障"""

    code = "internal_error"
    status_code = 500
    retryable = True
    default_message = "服务器内部错误"
