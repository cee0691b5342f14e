"""
Cart API Endpoints
Server-side pricing for the client cart

The cart itself lives on the client; these endpoints re-price it from
the live catalog so discounts and availability are always current.
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from pydantic import BaseModel, Field

from produce_store.core.auth import TokenUser, get_current_user_optional
from produce_store.core.exceptions import StoreError
from produce_store.domain.cart import CartLineRequest
from produce_store.services.cart_service import CartService

router = APIRouter()


# Request models
class CartQuoteRequest(BaseModel):
    items: List[CartLineRequest] = Field(default_factory=list, max_length=100)


@router.post("/quote")
async def quote_cart(request: CartQuoteRequest):
    """
    Re-price submitted cart lines

    Returns the priced cart plus the lines that could not be priced
    (product gone or unavailable), so the client can drop them.
    """
    try:
        quote = CartService().quote(request.items)

        return {"status": "success", "data": quote.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error pricing cart: {str(e)}")


@router.post("/items")
async def add_cart_item(
    line: CartLineRequest,
    user: Optional[TokenUser] = Depends(get_current_user_optional)
):
    """Price a single line being added to the cart"""
    try:
        item = CartService().add_item(line, user_id=user.id if user else None)

        return {"status": "success", "data": item.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding item: {str(e)}")
