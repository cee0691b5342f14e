"""
Subscriptions API Endpoints
Opt in or out of the weekly order-day reminder email
"""
from fastapi import APIRouter, Depends, HTTPException

from produce_store.core.auth import TokenUser, get_current_user
from produce_store.core.exceptions import StoreError
from produce_store.domain.customer import SubscriptionRequest
from produce_store.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("/me")
async def get_my_subscription(user: TokenUser = Depends(get_current_user)):
    try:
        subscription = SubscriptionService().get_subscription(user.id)

        return {
            "status": "success",
            "data": {
                "subscribed": bool(subscription and subscription.is_active),
                "subscription": subscription.to_dict() if subscription else None,
            }
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching subscription: {str(e)}")


@router.put("/me")
async def update_my_subscription(request: SubscriptionRequest, user: TokenUser = Depends(get_current_user)):
    try:
        subscription = SubscriptionService().set_subscription(
            user.id, user.email, request.subscribe, request.phone
        )

        return {
            "status": "success",
            "data": {
                "subscribed": subscription.is_active,
                "subscription": subscription.to_dict(),
            }
        }

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating subscription: {str(e)}")
