"""
Categories API Endpoints
Category and subcategory navigation plus admin management

Author: TM3
Date: 2026-02-10
"""
from fastapi import APIRouter, Depends, HTTPException

from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.exceptions import NotFoundError, StoreError, ValidationError
from produce_store.domain.catalog import CategoryCreate, CategoryUpdate, SubcategoryCreate, SubcategoryUpdate
from produce_store.repositories.category_repository import CategoryRepository

router = APIRouter()


@router.get("/")
async def get_categories():
    """Visible categories, each with its visible subcategories"""
    try:
        categories = CategoryRepository().find_all()

        return {
            "status": "success",
            "count": len(categories),
            "data": [c.to_dict() for c in categories]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")


@router.get("/admin/all")
async def get_all_categories_admin(admin: TokenUser = Depends(require_admin)):
    try:
        categories = CategoryRepository().find_all(include_hidden=True)

        return {
            "status": "success",
            "count": len(categories),
            "data": [c.to_dict() for c in categories]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")


@router.post("/", status_code=201)
async def create_category(data: CategoryCreate, admin: TokenUser = Depends(require_admin)):
    try:
        category = CategoryRepository().create(data)
        return {"status": "success", "data": category.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating category: {str(e)}")


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        category = CategoryRepository().update(category_id, updates)
        if category is None:
            raise NotFoundError("Category not found")

        return {"status": "success", "data": category.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating category: {str(e)}")


@router.delete("/{category_id}")
async def delete_category(category_id: str, admin: TokenUser = Depends(require_admin)):
    """Deletes the category and its subcategories"""
    try:
        if not CategoryRepository().delete(category_id):
            raise NotFoundError("Category not found")

        return {"status": "success", "message": "Category deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting category: {str(e)}")


# ========================================
# Subcategories
# ========================================

@router.post("/{category_id}/subcategories", status_code=201)
async def create_subcategory(
    category_id: str,
    data: SubcategoryCreate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        repo = CategoryRepository()
        if repo.find_by_id(category_id) is None:
            raise NotFoundError("Category not found")

        subcategory = repo.create_subcategory(category_id, data)
        return {"status": "success", "data": subcategory.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating subcategory: {str(e)}")


@router.put("/subcategories/{subcategory_id}")
async def update_subcategory(
    subcategory_id: str,
    data: SubcategoryUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        subcategory = CategoryRepository().update_subcategory(subcategory_id, updates)
        if subcategory is None:
            raise NotFoundError("Subcategory not found")

        return {"status": "success", "data": subcategory.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating subcategory: {str(e)}")


@router.delete("/subcategories/{subcategory_id}")
async def delete_subcategory(subcategory_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        if not CategoryRepository().delete_subcategory(subcategory_id):
            raise NotFoundError("Subcategory not found")

        return {"status": "success", "message": "Subcategory deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting subcategory: {str(e)}")
