"""
Checkout API Endpoints
Order placement, online payment and the order OTP

Author: TM3
Date: 2026-02-15
Updated: 2026-02-24 (email OTP)
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from produce_store.core.auth import TokenUser, get_current_user
from produce_store.core.exceptions import StoreError
from produce_store.core.rate_limit import endpoint_rate_limit
from produce_store.domain.order import CheckoutRequest, PaymentVerifyRequest
from produce_store.services.checkout_service import CheckoutService
from produce_store.services.otp_service import OtpService

router = APIRouter()


# Request models
class OtpVerifyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=10)


@router.post("/", status_code=201)
async def place_order(request: CheckoutRequest, user: TokenUser = Depends(get_current_user)):
    """
    Place an order from the submitted cart

    Cash-on-delivery orders are confirmed by email straight away. Online
    orders return a Razorpay order; the client completes payment and
    then calls /checkout/orders/{order_id}/verify-payment.
    """
    try:
        result = await CheckoutService().place_order(user.id, request, email=user.email)

        return {
            "status": "success",
            "data": {
                "order": result["order"].to_dict(),
                "delivery": result["delivery"].to_dict(),
                "payment": result["payment"],
            }
        }

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error placing order: {str(e)}")


@router.post("/orders/{order_id}/payment")
async def create_payment_order(order_id: str, user: TokenUser = Depends(get_current_user)):
    """Razorpay order for one of the user's unpaid orders"""
    try:
        payment = await CheckoutService().create_payment_order(order_id, user.id)

        return {"status": "success", "data": payment}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating payment: {str(e)}")


@router.post("/orders/{order_id}/verify-payment")
async def verify_payment(
    order_id: str,
    request: PaymentVerifyRequest,
    user: TokenUser = Depends(get_current_user)
):
    """Verify the Razorpay signature; on success the order is paid and confirmed"""
    try:
        order = await CheckoutService().verify_payment(order_id, user.id, request, email=user.email)

        return {"status": "success", "data": order.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error verifying payment: {str(e)}")


# ========================================
# Order OTP
# ========================================

@router.post("/otp/send")
async def send_otp(
    user: TokenUser = Depends(get_current_user),
    _: None = Depends(endpoint_rate_limit(5))
):
    try:
        result = await OtpService().send_code(user.id, user.email)

        return {"status": "success", "data": result}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sending OTP: {str(e)}")


@router.post("/otp/verify")
async def verify_otp(request: OtpVerifyRequest, user: TokenUser = Depends(get_current_user)):
    """
    Check an OTP code

    A wrong or expired code is a normal response with valid=false; only
    the lockout after too many failures is an error (429).
    """
    try:
        result = OtpService().verify_code(user.id, request.code)

        return {"status": "success", "data": result}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error verifying OTP: {str(e)}")
