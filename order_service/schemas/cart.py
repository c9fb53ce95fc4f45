from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from order_service.schemas.base import BaseResponse, TimestampSchema


class CartItemRequest(BaseModel):
    """加入购物车 / 修改数量"""
    product_id: int = Field(
        ...,
        gt=0,
        description="商品ID",
        examples=[1]
    )
    quantity: int = Field(
        ...,
        gt=0,
        description="购买数量",
        examples=[2]
    )


class CartItemSchema(TimestampSchema):
    id: int
    product_id: int
    quantity: int
    price: Optional[Decimal] = None
    product_name: Optional[str] = None

    @classmethod
    def from_item(cls, item) -> "CartItemSchema":
        product = item.product
        return cls(
            id=item.id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=product.price if product else None,
            product_name=product.name if product else None,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class CartResponse(BaseResponse):
    data: List[CartItemSchema] = []


class CartItemResponse(BaseResponse):
    data: CartItemSchema


class CartClearResponse(BaseResponse):
    removed: int = Field(
        0,
        ge=0,
        description="删除的购物车行数"
    )
