"""订单 API 路由（结算、查询、状态变更）"""

from typing import Optional
import logging

from fastapi import APIRouter, Body, Path, Query

from order_service.core.dependencies import (
    CheckoutDep,
    OrderQueryDep,
    OrderStatusDep,
    PrincipalDep,
)
from order_service.core.errors import InternalError, OrderServiceError
from order_service.models.order import OrderStatus
from order_service.schemas.order import (
    CheckoutRequest,
    CheckoutTaskResponse,
    OrderListResponse,
    OrderResponse,
    OrderSchema,
    TaskStatusResponse,
    UpdateOrderStatusRequest,
)
from tasks.order_tasks import checkout_order as celery_checkout_task

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/orders",
    tags=["订单管理"],
    responses={
        400: {"description": "购物车为空"},
        403: {"description": "没有权限"},
        404: {"description": "资源未找到"},
        409: {"description": "库存不足或并发冲突"},
        422: {"description": "请求验证失败"},
        500: {"description": "服务器内部错误"}
    }
)


@router.post(
    "",
    response_model=OrderResponse,
    status_code=201,
    summary="结算下单",
    description="""把当前用户的购物车转换为订单。

    **保证：**
    - 库存扣减、订单创建、购物车清空在同一个数据库事务内完成
    - 商品行级锁防止超卖
    - 任何一步失败整体回滚，购物车和库存保持不变
    """,
)
def checkout(
    request: CheckoutRequest = Body(..., description="结算请求参数"),
    principal = PrincipalDep,
    coordinator = CheckoutDep
):
    """结算（防超卖核心接口）"""
    try:
        order = coordinator.checkout(
            principal.user_id,
            request.shipping_address,
            request.payment_method
        )
        return {"success": True, "message": "下单成功", "data": OrderSchema.model_validate(order)}
    except OrderServiceError:
        # 透传业务异常
        raise
    except Exception as e:
        logger.error(f"结算失败: {str(e)}", exc_info=True)
        # 未知异常统一抛 500
        raise InternalError() from e


@router.get("", response_model=OrderListResponse, summary="我的订单")
def list_my_orders(
    limit: int = Query(50, ge=1, le=200, description="每页数量"),
    offset: int = Query(0, ge=0, description="偏移量"),
    principal = PrincipalDep,
    service = OrderQueryDep
):
    orders = service.list_my_orders(principal, limit, offset)
    return {
        "success": True,
        "data": [OrderSchema.model_validate(order) for order in orders]
    }


@router.get("/admin/all", response_model=OrderListResponse, summary="全部订单（管理员）")
def list_all_orders(
    status: Optional[OrderStatus] = Query(None, description="按状态过滤"),
    limit: int = Query(50, ge=1, le=200, description="每页数量"),
    offset: int = Query(0, ge=0, description="偏移量"),
    principal = PrincipalDep,
    service = OrderQueryDep
):
    orders = service.list_all_orders(principal, status, limit, offset)
    return {
        "success": True,
        "data": [OrderSchema.model_validate(order) for order in orders]
    }


@router.get("/{order_id}", response_model=OrderResponse, summary="订单详情")
def get_order(
    order_id: int = Path(..., gt=0, description="订单ID"),
    principal = PrincipalDep,
    service = OrderQueryDep
):
    """订单详情（本人或管理员）"""
    order = service.get_order(order_id, principal)
    return {"success": True, "data": OrderSchema.model_validate(order)}


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="修改订单状态（管理员）",
    description="""按状态机流转订单状态：
    pending → processing → shipped → delivered，
    pending / processing 可取消；delivered 与 cancelled 为终态。
    """,
)
def update_order_status(
    order_id: int = Path(..., gt=0, description="订单ID"),
    request: UpdateOrderStatusRequest = Body(...),
    principal = PrincipalDep,
    controller = OrderStatusDep
):
    try:
        order = controller.update_status(order_id, request.status, principal)
        return {"success": True, "message": "状态已更新", "data": OrderSchema.model_validate(order)}
    except OrderServiceError:
        raise
    except Exception as e:
        logger.error(f"修改订单状态失败: {str(e)}", exc_info=True)
        raise InternalError() from e


@router.post("/async", response_model=CheckoutTaskResponse, summary="异步结算")
def checkout_async(
    request: CheckoutRequest = Body(...),
    principal = PrincipalDep
):
    """提交 Celery 异步结算任务，冲突类错误由 worker 重试"""
    try:
        task = celery_checkout_task.delay(
            principal.user_id,
            request.shipping_address,
            request.payment_method
        )
        return {
            "success": True,
            "message": "已提交异步结算任务",
            "task_id": task.id
        }
    except Exception as e:
        logger.error(f"Celery 任务提交失败: {str(e)}")
        raise InternalError("任务提交失败") from e


@router.get("/tasks/{task_id}", response_model=TaskStatusResponse, summary="异步结算任务状态")
def get_checkout_task_status(task_id: str):
    """查询 Celery 任务执行状态"""
    try:
        task = celery_checkout_task.AsyncResult(task_id)
        result = None

        if task.state == 'PENDING':
            status = "任务等待中"
        elif task.state == 'SUCCESS':
            status = "任务完成"
            result = task.result
        elif task.state == 'FAILURE':
            status = f"任务失败: {str(task.info)}"
        else:
            status = f"任务状态: {task.state}"

        return {
            "task_id": task_id,
            "status": status,
            "state": task.state,
            "result": result
        }
    except Exception as e:
        logger.error(f"查询任务状态失败: {str(e)}")
        raise InternalError() from e
