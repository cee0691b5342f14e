"""
Pre-orders API Endpoints
Reservations against promotional banners, their payment and notifications

Author: TM3
Date: 2026-02-16
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from pydantic import BaseModel, Field

from produce_store.core.auth import TokenUser, get_current_user, require_admin
from produce_store.core.exceptions import StoreError
from produce_store.domain.order import PaymentVerifyRequest
from produce_store.domain.preorder import PreOrderCreate, PreOrderStatusUpdate
from produce_store.services.preorder_service import PreOrderService

router = APIRouter()


# Request models
class NotifyAvailableRequest(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=200)
    banner_id: Optional[str] = None


class NotificationsReadRequest(BaseModel):
    notification_id: Optional[str] = None


@router.post("/", status_code=201)
async def create_pre_order(request: PreOrderCreate, user: TokenUser = Depends(get_current_user)):
    """
    Reserve a product from a live banner

    Returns the pre-order and its position in the queue for that product.
    """
    try:
        pre_order, position = await PreOrderService().create(user.id, request)

        data = pre_order.to_dict()
        data["queue_position"] = position
        return {"status": "success", "data": data}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating pre-order: {str(e)}")


@router.get("/")
async def get_my_pre_orders(user: TokenUser = Depends(get_current_user)):
    try:
        pre_orders = PreOrderService().list_for_user(user.id)

        return {
            "status": "success",
            "count": len(pre_orders),
            "data": [p.to_dict() for p in pre_orders]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching pre-orders: {str(e)}")


# ========================================
# Notifications
# ========================================

@router.get("/notifications")
async def get_notifications(
    unread_only: bool = Query(False),
    user: TokenUser = Depends(get_current_user)
):
    try:
        notifications = PreOrderService().list_notifications(user.id, unread_only=unread_only)

        return {
            "status": "success",
            "count": len(notifications),
            "unread": sum(1 for n in notifications if not n.is_read),
            "data": [n.to_dict() for n in notifications]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching notifications: {str(e)}")


@router.post("/notifications/read")
async def mark_notifications_read(
    request: NotificationsReadRequest,
    user: TokenUser = Depends(get_current_user)
):
    """Mark one notification (or all of them) as read"""
    try:
        updated = PreOrderService().mark_notifications_read(user.id, request.notification_id)

        return {"status": "success", "data": {"updated": updated}}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating notifications: {str(e)}")


# ========================================
# Admin
# ========================================

@router.get("/admin/all")
async def get_all_pre_orders(
    status: Optional[str] = Query(None),
    product_name: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: TokenUser = Depends(require_admin)
):
    try:
        pre_orders, total = PreOrderService().list_all(
            status=status,
            product_name=product_name,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "count": len(pre_orders),
            "data": [p.to_dict() for p in pre_orders]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching pre-orders: {str(e)}")


@router.put("/admin/{pre_order_id}/status")
async def update_pre_order_status(
    pre_order_id: str,
    request: PreOrderStatusUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        pre_order = PreOrderService().update_status(pre_order_id, request.status)

        return {"status": "success", "data": pre_order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating pre-order status: {str(e)}")


@router.post("/admin/notify-available")
async def notify_available(request: NotifyAvailableRequest, admin: TokenUser = Depends(require_admin)):
    """
    Tell everyone waiting on a product that it is available

    Pending pre-orders move to confirmed and get an in-app notification
    plus an email.
    """
    try:
        result = await PreOrderService().notify_available(request.product_name, request.banner_id)

        return {"status": "success", "data": result}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error notifying customers: {str(e)}")


# ========================================
# Single pre-order
# ========================================

@router.get("/{pre_order_id}")
async def get_my_pre_order(pre_order_id: str, user: TokenUser = Depends(get_current_user)):
    try:
        service = PreOrderService()
        pre_order = service.get_for_user(pre_order_id, user.id)

        data = pre_order.to_dict()
        data["queue_position"] = service.queue_position(pre_order)
        return {"status": "success", "data": data}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching pre-order: {str(e)}")


@router.post("/{pre_order_id}/cancel")
async def cancel_my_pre_order(pre_order_id: str, user: TokenUser = Depends(get_current_user)):
    try:
        pre_order = PreOrderService().cancel_by_customer(pre_order_id, user.id)

        return {"status": "success", "data": pre_order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling pre-order: {str(e)}")


@router.post("/{pre_order_id}/payment")
async def create_pre_order_payment(pre_order_id: str, user: TokenUser = Depends(get_current_user)):
    try:
        payment = await PreOrderService().create_payment_order(pre_order_id, user.id)

        return {"status": "success", "data": payment}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating payment: {str(e)}")


@router.post("/{pre_order_id}/verify-payment")
async def verify_pre_order_payment(
    pre_order_id: str,
    request: PaymentVerifyRequest,
    user: TokenUser = Depends(get_current_user)
):
    try:
        pre_order = PreOrderService().verify_payment(pre_order_id, user.id, request)

        return {"status": "success", "data": pre_order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error verifying payment: {str(e)}")
