"""购物车 API 路由"""

from fastapi import APIRouter, Body, Path

from order_service.core.dependencies import CartServiceDep, PrincipalDep
from order_service.schemas.cart import (
    CartClearResponse,
    CartItemRequest,
    CartItemResponse,
    CartItemSchema,
    CartResponse,
)
from order_service.schemas.base import BaseResponse

router = APIRouter(
    prefix="/cart",
    tags=["购物车"],
)


@router.get("", response_model=CartResponse, summary="查看购物车")
def get_cart(principal = PrincipalDep, service = CartServiceDep):
    items = service.get_cart(principal.user_id)
    return {"success": True, "data": [CartItemSchema.from_item(item) for item in items]}


@router.post("", response_model=CartItemResponse, summary="加入购物车")
def add_to_cart(
    request: CartItemRequest = Body(...),
    principal = PrincipalDep,
    service = CartServiceDep
):
    item = service.add_item(principal.user_id, request.product_id, request.quantity)
    return {"success": True, "message": "已加入购物车", "data": CartItemSchema.from_item(item)}


@router.put("", response_model=CartItemResponse, summary="修改购买数量")
def update_cart_item(
    request: CartItemRequest = Body(...),
    principal = PrincipalDep,
    service = CartServiceDep
):
    item = service.update_quantity(principal.user_id, request.product_id, request.quantity)
    return {"success": True, "message": "数量已更新", "data": CartItemSchema.from_item(item)}


@router.delete("/{product_id}", response_model=BaseResponse, summary="移除商品")
def remove_cart_item(
    product_id: int = Path(..., gt=0, description="商品ID"),
    principal = PrincipalDep,
    service = CartServiceDep
):
    service.remove_item(principal.user_id, product_id)
    return {"success": True, "message": "已移除"}


@router.delete("", response_model=CartClearResponse, summary="清空购物车")
def clear_cart(principal = PrincipalDep, service = CartServiceDep):
    removed = service.clear(principal.user_id)
    return {"success": True, "message": "购物车已清空", "removed": removed}
