"""
Site Settings API Endpoints
Store-wide settings: delivery pricing, order days, seasonal box
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.exceptions import StoreError, ValidationError
from produce_store.domain.settings import SiteSettingsUpdate
from produce_store.repositories.settings_repository import SettingsRepository

router = APIRouter()


@router.get("/")
async def get_site_settings():
    """Public settings plus the next order day customers can order for"""
    try:
        site = SettingsRepository().get()

        data = site.to_dict()
        data["next_order_date"] = site.order_date_for(date.today()).isoformat()
        return {"status": "success", "data": data}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching settings: {str(e)}")


@router.put("/")
async def update_site_settings(data: SiteSettingsUpdate, admin: TokenUser = Depends(require_admin)):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        site = SettingsRepository().update(updates)
        return {"status": "success", "data": site.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating settings: {str(e)}")
