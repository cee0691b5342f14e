"""
API endpoints for inventory management.
"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from datetime import datetime

from produce_store.core.auth import TokenUser, require_admin
from produce_store.services.inventory_service import InventoryService


router = APIRouter()

SHEET_EXTENSIONS = ('.xlsx', '.xls', '.csv')


@router.get("/summary")
async def get_stock_summary(
    low_stock_threshold: int = Query(5, ge=0),
    admin: TokenUser = Depends(require_admin)
):
    try:
        summary = InventoryService().get_stock_summary(low_stock_threshold)
        return {"status": "success", "data": summary}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching stock summary: {str(e)}")


@router.get("/template")
async def download_inventory_template(admin: TokenUser = Depends(require_admin)):
    """
    Download Excel template with every product and its current stock

    Returns:
        Excel file ready for editing
    """
    try:
        service = InventoryService()
        excel_file = service.generate_inventory_template()

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"Inventory_{timestamp}.xlsx"

        return StreamingResponse(
            excel_file,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={
                "Content-Disposition": f"attachment; filename={filename}"
            }
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error generating template: {str(e)}")


@router.post("/preview")
async def preview_inventory_file(
    file: UploadFile = File(...),
    admin: TokenUser = Depends(require_admin)
):
    """
    Preview an uploaded sheet WITHOUT updating the database

    Returns:
        The stock changes the upload would make
    """
    try:
        if not file.filename.lower().endswith(SHEET_EXTENSIONS):
            raise HTTPException(
                status_code=400,
                detail="File must be Excel (.xlsx or .xls) or CSV"
            )

        contents = await file.read()
        preview = InventoryService().preview_inventory_file(contents, file.filename)

        if preview["status"] == "error":
            raise HTTPException(status_code=400, detail=preview["message"])

        return preview

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error previewing file: {str(e)}")


@router.post("/bulk-update")
async def bulk_update_inventory(
    file: UploadFile = File(...),
    admin: TokenUser = Depends(require_admin)
):
    """
    Apply stock levels from an uploaded sheet

    Returns:
        Per-product results and a summary
    """
    try:
        if not file.filename.lower().endswith(SHEET_EXTENSIONS):
            raise HTTPException(
                status_code=400,
                detail="File must be Excel (.xlsx or .xls) or CSV"
            )

        contents = await file.read()
        results = InventoryService().process_inventory_upload(contents, file.filename)

        if results["status"] == "error":
            raise HTTPException(status_code=400, detail=results["message"])

        return results

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error processing file: {str(e)}")
