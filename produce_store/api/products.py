"""
Products API Endpoints
Storefront catalog, admin product management, variants and images

Author: TM3
Date: 2026-02-10
Updated: 2026-02-18 (variants, stock notifications)
"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from typing import Optional

from produce_store.connectors.storage_connector import StorageConnector
from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.exceptions import NotFoundError, StoreError, ValidationError
from produce_store.domain.product import ProductCreate, ProductUpdate, VariantCreate, VariantUpdate
from produce_store.repositories.product_repository import ProductRepository

router = APIRouter()


@router.get("/")
async def get_products(
    category: Optional[str] = Query(None, description="Filter by category slug"),
    subcategory: Optional[str] = Query(None, description="Filter by subcategory slug"),
    search: Optional[str] = Query(None, description="Search by name or description"),
    bestsellers: bool = Query(False, description="Only bestsellers"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0)
):
    """
    Storefront product listing

    Hidden products are never returned here.
    """
    try:
        repo = ProductRepository()

        products, total = repo.find_all(
            category=category,
            subcategory=subcategory,
            search=search,
            bestsellers_only=bestsellers,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(products),
            "data": [product.to_dict() for product in products]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/admin/all")
async def get_all_products_admin(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(500, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    admin: TokenUser = Depends(require_admin)
):
    """Admin listing, hidden products included"""
    try:
        products, total = ProductRepository().find_all(
            category=category,
            search=search,
            include_hidden=True,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "count": len(products),
            "data": [product.to_dict() for product in products]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/stock-notifications")
async def get_stock_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    admin: TokenUser = Depends(require_admin)
):
    """Stock change feed written on every stock or availability update"""
    try:
        notifications = ProductRepository().find_stock_notifications(unread_only=unread_only, limit=limit)

        return {
            "status": "success",
            "count": len(notifications),
            "data": notifications
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching stock notifications: {str(e)}")


@router.post("/stock-notifications/read")
async def mark_stock_notifications_read(admin: TokenUser = Depends(require_admin)):
    try:
        updated = ProductRepository().mark_stock_notifications_read()
        return {"status": "success", "data": {"updated": updated}}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating stock notifications: {str(e)}")


@router.post("/images")
async def upload_product_image(
    file: UploadFile = File(...),
    admin: TokenUser = Depends(require_admin)
):
    """
    Upload a product image to Supabase Storage

    Returns:
        The public URL to store on the product
    """
    try:
        content = await file.read()
        url = StorageConnector().upload_image(content, file.content_type)

        return {"status": "success", "data": {"url": url}}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error uploading image: {str(e)}")


@router.get("/{product_id}")
async def get_product(product_id: str):
    """Single product with its available variants"""
    try:
        product = ProductRepository().find_by_id(product_id)
        if product is None or product.is_hidden:
            raise NotFoundError("Product not found")

        product.variants = [v for v in product.variants if v.is_available]

        return {"status": "success", "data": product.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.post("/", status_code=201)
async def create_product(data: ProductCreate, admin: TokenUser = Depends(require_admin)):
    try:
        product = ProductRepository().create(data)
        return {"status": "success", "data": product.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating product: {str(e)}")


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    admin: TokenUser = Depends(require_admin)
):
    """
    Partial product update

    Stock or availability changes write a stock notification.
    """
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        product = ProductRepository().update(product_id, updates)
        if product is None:
            raise NotFoundError("Product not found")

        return {"status": "success", "data": product.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating product: {str(e)}")


@router.delete("/{product_id}")
async def delete_product(product_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        if not ProductRepository().delete(product_id):
            raise NotFoundError("Product not found")

        return {"status": "success", "message": "Product deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product: {str(e)}")


# ========================================
# Variants
# ========================================

@router.get("/{product_id}/variants")
async def get_variants(product_id: str, available_only: bool = Query(True)):
    try:
        variants = ProductRepository().find_variants(product_id, available_only=available_only)

        return {
            "status": "success",
            "count": len(variants),
            "data": [v.to_dict() for v in variants]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching variants: {str(e)}")


@router.post("/{product_id}/variants", status_code=201)
async def create_variant(
    product_id: str,
    data: VariantCreate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        repo = ProductRepository()
        if repo.find_by_id(product_id, with_variants=False) is None:
            raise NotFoundError("Product not found")

        variant = repo.create_variant(product_id, data)
        return {"status": "success", "data": variant.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating variant: {str(e)}")


@router.put("/variants/{variant_id}")
async def update_variant(
    variant_id: str,
    data: VariantUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        variant = ProductRepository().update_variant(variant_id, updates)
        if variant is None:
            raise NotFoundError("Variant not found")

        return {"status": "success", "data": variant.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating variant: {str(e)}")


@router.delete("/variants/{variant_id}")
async def delete_variant(variant_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        if not ProductRepository().delete_variant(variant_id):
            raise NotFoundError("Variant not found")

        return {"status": "success", "message": "Variant deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting variant: {str(e)}")
