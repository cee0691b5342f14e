"""
Addresses API Endpoints
Saved delivery addresses of the signed-in customer

Author: TM3
Date: 2026-02-13
"""
from fastapi import APIRouter, Depends, HTTPException

from produce_store.core.auth import TokenUser, get_current_user
from produce_store.core.exceptions import NotFoundError, StoreError, ValidationError
from produce_store.domain.address import AddressCreate, AddressUpdate, pick_default
from produce_store.repositories.address_repository import AddressRepository

router = APIRouter()


@router.get("/")
async def get_my_addresses(user: TokenUser = Depends(get_current_user)):
    """Addresses with the default first"""
    try:
        addresses = AddressRepository().find_by_user(user.id)

        return {
            "status": "success",
            "count": len(addresses),
            "data": [a.to_dict() for a in addresses]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching addresses: {str(e)}")


@router.get("/default")
async def get_default_address(user: TokenUser = Depends(get_current_user)):
    """The default address, or the first listed when none is flagged"""
    try:
        address = pick_default(AddressRepository().find_by_user(user.id))

        return {"status": "success", "data": address.to_dict() if address else None}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching default address: {str(e)}")


@router.post("/", status_code=201)
async def create_address(data: AddressCreate, user: TokenUser = Depends(get_current_user)):
    """The first saved address always becomes the default"""
    try:
        repo = AddressRepository()
        if not data.is_default and repo.count_by_user(user.id) == 0:
            data = data.model_copy(update={"is_default": True})

        address = repo.create(user.id, data)
        return {"status": "success", "data": address.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error saving address: {str(e)}")


@router.put("/{address_id}")
async def update_address(
    address_id: str,
    data: AddressUpdate,
    user: TokenUser = Depends(get_current_user)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        address = AddressRepository().update(address_id, user.id, updates)
        if address is None:
            raise NotFoundError("Address not found")

        return {"status": "success", "data": address.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating address: {str(e)}")


@router.post("/{address_id}/default")
async def set_default_address(address_id: str, user: TokenUser = Depends(get_current_user)):
    try:
        address = AddressRepository().update(address_id, user.id, {"is_default": True})
        if address is None:
            raise NotFoundError("Address not found")

        return {"status": "success", "data": address.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating address: {str(e)}")


@router.delete("/{address_id}")
async def delete_address(address_id: str, user: TokenUser = Depends(get_current_user)):
    try:
        if not AddressRepository().delete(address_id, user.id):
            raise NotFoundError("Address not found")

        return {"status": "success", "message": "Address deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting address: {str(e)}")
