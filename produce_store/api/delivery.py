"""
Delivery API Endpoints
Distance-based delivery quotes by pincode

Author: TM3
Date: 2026-02-12
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.rate_limit import endpoint_rate_limit
from produce_store.domain.delivery import DeliveryQuoteRequest
from produce_store.repositories.settings_repository import SettingsRepository
from produce_store.services.delivery_service import delivery_service

router = APIRouter()


@router.post("/quote")
async def quote_delivery(
    request: DeliveryQuoteRequest,
    _: None = Depends(endpoint_rate_limit(30))
):
    """
    Delivery charge for a pincode

    An undeliverable pincode is not an error: the quote comes back with
    delivery_unavailable set and a message for the customer.
    """
    try:
        quote = await delivery_service.quote(
            request.pincode,
            subtotal=request.subtotal,
            force_refresh=request.force_refresh
        )

        return {"status": "success", "data": quote.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating delivery: {str(e)}")


@router.get("/zones")
async def get_delivery_zones():
    try:
        zones = SettingsRepository().find_delivery_zones(active_only=True)

        return {
            "status": "success",
            "count": len(zones),
            "data": [z.to_dict() for z in zones]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching delivery zones: {str(e)}")


@router.delete("/cache")
async def clear_delivery_cache(
    pincode: Optional[str] = Query(None, description="Clear a single pincode"),
    admin: TokenUser = Depends(require_admin)
):
    try:
        cleared = delivery_service.clear_cache(pincode)

        return {"status": "success", "data": {"cleared": cleared}}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error clearing delivery cache: {str(e)}")
