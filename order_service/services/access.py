"""权限判断

身份和角色由上游网关认证后传入，这里只做纯粹的能力判断，
不依赖任何传输层对象。
"""

from dataclasses import dataclass

from order_service.core.config import settings
from order_service.core.errors import AuthorizationError


@dataclass(frozen=True)
class Principal:
    """请求发起者（已认证的身份 + 角色）"""
    user_id: int
    role: str = "customer"

    @property
    def is_privileged(self) -> bool:
        return self.role == settings.ADMIN_ROLE


def can_update_order_status(principal: Principal) -> bool:
    return principal.is_privileged


def can_view_order(principal: Principal, owner_id: int) -> bool:
    return principal.is_privileged or principal.user_id == owner_id


def can_adjust_stock(principal: Principal) -> bool:
    return principal.is_privileged


def can_list_all_orders(principal: Principal) -> bool:
    return principal.is_privileged


def require(allowed: bool, message: str = None) -> None:
    if not allowed:
        raise AuthorizationError(message)
