"""库存 API 路由"""

import logging

from fastapi import APIRouter, Body, Path

from order_service.core.dependencies import PrincipalDep, StockLedgerDep
from order_service.schemas.stock import AdjustStockRequest, AdjustStockResponse, StockResponse
from order_service.services.access import can_adjust_stock, require

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/stock",
    tags=["库存"],
)


@router.get(
    "/{product_id}",
    response_model=StockResponse,
    summary="查询商品库存",
    description="""查询指定商品的当前库存。

    **缓存策略：**
    - 首先查询Redis缓存
    - 缓存未命中则查询数据库
    - 结算或调整库存提交后写入最新库存
    """,
)
def get_stock(
    product_id: int = Path(..., gt=0, description="商品ID"),
    ledger = StockLedgerDep
):
    stock = ledger.get_product_stock(product_id)
    return {"success": True, "product_id": product_id, "stock_quantity": stock}


@router.post("/{product_id}/adjust", response_model=AdjustStockResponse, summary="调整库存（管理员）")
def adjust_stock(
    product_id: int = Path(..., gt=0, description="商品ID"),
    request: AdjustStockRequest = Body(...),
    principal = PrincipalDep,
    ledger = StockLedgerDep
):
    require(can_adjust_stock(principal), "只有管理员可以调整库存")
    snapshot = ledger.adjust_stock(product_id, request.delta, operator=f"user_{principal.user_id}")
    return {
        "success": True,
        "message": "库存已调整",
        "product_id": product_id,
        "stock_quantity": snapshot.stock_after,
        "before_stock": snapshot.stock_before,
    }
