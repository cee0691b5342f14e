"""
Orders API Endpoints
Customer order history and admin order management

Author: TM3
Date: 2026-02-15
Updated: 2026-02-19 (status emails via BackgroundTasks)
"""
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from typing import Optional

from produce_store.core.auth import TokenUser, get_current_user, require_admin
from produce_store.core.exceptions import StoreError
from produce_store.domain.order import OrderStatusUpdate, PaymentStatusUpdate
from produce_store.services.order_service import OrderService

router = APIRouter()


# ========================================
# Customer
# ========================================

@router.get("/")
async def get_my_orders(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(get_current_user)
):
    try:
        orders = OrderService().list_for_user(user.id, limit=limit, offset=offset)

        return {
            "status": "success",
            "count": len(orders),
            "data": [o.to_dict() for o in orders]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/admin/all")
async def get_all_orders(
    status: Optional[str] = Query(None, description="Filter by order status"),
    payment_status: Optional[str] = Query(None, description="Filter by payment status"),
    from_date: Optional[date] = Query(None, description="Created on or after (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, description="Created on or before (YYYY-MM-DD)"),
    search: Optional[str] = Query(None, description="Order number, name or phone"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: TokenUser = Depends(require_admin)
):
    try:
        orders, total = OrderService().list_orders(
            status=status,
            payment_status=payment_status,
            from_date=from_date,
            to_date=to_date,
            search=search,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(orders),
            "data": [o.to_dict() for o in orders]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/admin/stats")
async def get_order_stats(admin: TokenUser = Depends(require_admin)):
    try:
        return {"status": "success", "data": OrderService().get_stats()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order stats: {str(e)}")


@router.get("/admin/{order_id}")
async def get_order_admin(order_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        order = OrderService().get_order(order_id)
        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.put("/admin/{order_id}/status")
async def update_order_status(
    order_id: str,
    request: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: TokenUser = Depends(require_admin)
):
    """
    Move an order to a new status

    Only forward moves along pending → confirmed → preparing →
    out_for_delivery → delivered, or cancellation before delivery, are
    accepted (409 otherwise). The customer email goes out after the
    response.
    """
    try:
        service = OrderService()
        order = service.update_status(order_id, request.status)
        background_tasks.add_task(service.notify_status_change, order)

        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating order status: {str(e)}")


@router.post("/admin/{order_id}/advance")
async def advance_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    admin: TokenUser = Depends(require_admin)
):
    """Move an order one step forward"""
    try:
        service = OrderService()
        order = service.advance(order_id)
        background_tasks.add_task(service.notify_status_change, order)

        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error advancing order: {str(e)}")


@router.put("/admin/{order_id}/payment-status")
async def update_payment_status(
    order_id: str,
    request: PaymentStatusUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        order = OrderService().update_payment_status(order_id, request.payment_status, request.upi_reference)

        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating payment status: {str(e)}")


@router.get("/{order_id}")
async def get_my_order(order_id: str, user: TokenUser = Depends(get_current_user)):
    try:
        order = OrderService().get_for_user(order_id, user.id)
        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.post("/{order_id}/cancel")
async def cancel_my_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(get_current_user)
):
    """Customers can cancel while the order is still pending"""
    try:
        service = OrderService()
        order = service.cancel_by_customer(order_id, user.id)
        background_tasks.add_task(service.notify_status_change, order)

        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling order: {str(e)}")
