"""订单相关的 Pydantic 模型（金额一律使用 Decimal，JSON 中序列化为字符串）"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from order_service.models.order import OrderStatus
from order_service.schemas.base import BaseResponse, ORMSchema, TimestampSchema


# ==================== 请求模型 ====================

class CheckoutRequest(BaseModel):
    """结算请求"""
    shipping_address: str = Field(
        ...,
        min_length=1,
        description="收货地址",
        examples=["上海市浦东新区世纪大道100号"]
    )
    payment_method: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="支付方式",
        examples=["credit_card"]
    )


class UpdateOrderStatusRequest(BaseModel):
    """订单状态变更请求"""
    status: OrderStatus = Field(
        ...,
        description="目标状态",
        examples=["processing"]
    )


# ==================== 响应模型 ====================

class OrderItemSchema(ORMSchema):
    id: int
    product_id: int
    quantity: int
    price: Decimal
    created_at: Optional[datetime] = None


class OrderSchema(TimestampSchema):
    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    shipping_address: str
    payment_method: str
    items: List[OrderItemSchema] = []


class OrderResponse(BaseResponse):
    data: OrderSchema


class OrderListResponse(BaseResponse):
    data: List[OrderSchema] = []


class CheckoutTaskResponse(BaseResponse):
    """异步结算任务响应"""
    task_id: Optional[str] = Field(
        None,
        description="任务ID"
    )


class TaskStatusResponse(BaseModel):
    """任务状态响应"""
    task_id: str = Field(
        ...,
        description="任务ID"
    )
    status: str = Field(
        ...,
        description="任务状态描述"
    )
    state: str = Field(
        ...,
        description="任务状态码"
    )
    result: Optional[dict] = Field(
        None,
        description="任务结果"
    )
