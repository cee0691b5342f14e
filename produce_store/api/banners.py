"""
Banners API Endpoints
Promotional banners that open pre-orders for upcoming produce

Author: TM3
Date: 2026-02-14
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.exceptions import NotFoundError, StoreError, ValidationError
from produce_store.domain.preorder import BannerCreate, BannerUpdate
from produce_store.repositories.banner_repository import BannerRepository

router = APIRouter()


@router.get("/")
async def get_live_banners():
    """Active banners whose date window includes today"""
    try:
        today = date.today()
        banners = [b for b in BannerRepository().find_all(active_only=True) if b.is_live(today)]

        return {
            "status": "success",
            "count": len(banners),
            "data": [b.to_dict() for b in banners]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching banners: {str(e)}")


@router.get("/admin/all")
async def get_all_banners_admin(admin: TokenUser = Depends(require_admin)):
    try:
        banners = BannerRepository().find_all()

        return {
            "status": "success",
            "count": len(banners),
            "data": [b.to_dict() for b in banners]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching banners: {str(e)}")


@router.get("/{banner_id}")
async def get_banner(banner_id: str):
    try:
        banner = BannerRepository().find_by_id(banner_id)
        if banner is None or not banner.is_live(date.today()):
            raise NotFoundError("Banner not found")

        return {"status": "success", "data": banner.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching banner: {str(e)}")


@router.post("/", status_code=201)
async def create_banner(data: BannerCreate, admin: TokenUser = Depends(require_admin)):
    try:
        if data.payment_required and data.price_per_unit is None:
            raise ValidationError("price_per_unit is required when payment is required")

        banner = BannerRepository().create(data)
        return {"status": "success", "data": banner.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating banner: {str(e)}")


@router.put("/{banner_id}")
async def update_banner(
    banner_id: str,
    data: BannerUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        banner = BannerRepository().update(banner_id, updates)
        if banner is None:
            raise NotFoundError("Banner not found")

        return {"status": "success", "data": banner.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating banner: {str(e)}")


@router.delete("/{banner_id}")
async def delete_banner(banner_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        if not BannerRepository().delete(banner_id):
            raise NotFoundError("Banner not found")

        return {"status": "success", "message": "Banner deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting banner: {str(e)}")
