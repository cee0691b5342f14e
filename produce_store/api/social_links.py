"""
Social Links API Endpoints
Store profiles (Instagram, WhatsApp, ...) listed in the storefront sidebar

Author: TM3
Date: 2026-02-20
"""
from fastapi import APIRouter, Depends, HTTPException

from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.exceptions import NotFoundError, StoreError, ValidationError
from produce_store.domain.catalog import SocialLinkCreate, SocialLinkUpdate
from produce_store.repositories.social_link_repository import SocialLinkRepository

router = APIRouter()


@router.get("/")
async def get_visible_social_links():
    try:
        links = SocialLinkRepository().find_all(visible_only=True)

        return {
            "status": "success",
            "count": len(links),
            "data": [link.to_dict() for link in links]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching social links: {str(e)}")


@router.get("/admin/all")
async def get_all_social_links_admin(admin: TokenUser = Depends(require_admin)):
    """Every link, hidden ones included"""
    try:
        links = SocialLinkRepository().find_all()

        return {
            "status": "success",
            "count": len(links),
            "data": [link.to_dict() for link in links]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching social links: {str(e)}")


@router.post("/", status_code=201)
async def create_social_link(data: SocialLinkCreate, admin: TokenUser = Depends(require_admin)):
    try:
        link = SocialLinkRepository().create(data)
        return {"status": "success", "data": link.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating social link: {str(e)}")


@router.put("/{link_id}")
async def update_social_link(
    link_id: str,
    data: SocialLinkUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        link = SocialLinkRepository().update(link_id, updates)
        if link is None:
            raise NotFoundError("Social link not found")

        return {"status": "success", "data": link.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating social link: {str(e)}")


@router.delete("/{link_id}")
async def delete_social_link(link_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        if not SocialLinkRepository().delete(link_id):
            raise NotFoundError("Social link not found")

        return {"status": "success", "message": "Social link deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting social link: {str(e)}")
