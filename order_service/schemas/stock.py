from pydantic import BaseModel, Field

from order_service.schemas.base import BaseResponse


class AdjustStockRequest(BaseModel):
    """人工调整库存（正数入库，负数出库）"""
    delta: int = Field(
        ...,
        description="库存变化量",
        examples=[10]
    )


class StockResponse(BaseResponse):
    """单个商品库存响应"""
    product_id: int = Field(
        ...,
        description="商品ID"
    )
    stock_quantity: int = Field(
        ...,
        ge=0,
        description="当前库存数量"
    )


class AdjustStockResponse(StockResponse):
    before_stock: int = Field(
        ...,
        ge=0,
        description="调整前库存"
    )


class HealthCheckResponse(BaseModel):
    """健康检查响应"""
    status: str = Field(
        "healthy",
        description="服务状态"
    )
    service: str = Field(
        "order-fulfillment-service",
        description="服务名称"
    )
    version: str = Field(
        "1.0.0",
        description="服务版本"
    )
