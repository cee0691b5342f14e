"""
Admin API Endpoints
Customers, customer segments, offline customers, sales reports and
weekly reminders

Author: TM3
Date: 2026-02-20
Updated: 2026-02-22 (sales reports)
"""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from typing import Optional
from pydantic import BaseModel, EmailStr

from produce_store.core.auth import TokenUser, require_admin
from produce_store.core.exceptions import StoreError, ValidationError
from produce_store.domain.customer import OfflineCustomerCreate, OfflineCustomerUpdate
from produce_store.services.report_service import ReportService
from produce_store.services.segmentation_service import SegmentationService
from produce_store.services.subscription_service import SubscriptionService

router = APIRouter()


# Request models
class ReportEmailRequest(BaseModel):
    report_type: str = "weekly"
    to: Optional[EmailStr] = None


# ========================================
# Customers
# ========================================

@router.get("/customers")
async def get_customers(admin: TokenUser = Depends(require_admin)):
    """Registered customers with order count and total spend"""
    try:
        customers = SegmentationService().list_customers()

        return {
            "status": "success",
            "count": len(customers),
            "data": [c.to_dict() for c in customers]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching customers: {str(e)}")


@router.get("/customers/segments")
async def get_customer_segments(admin: TokenUser = Depends(require_admin)):
    """
    VIP, dormant and new customer segments

    - VIP: spend at or above the top-20% cut, minimum 2000
    - Dormant: ordered before, nothing in 30+ days
    - New: signed up in the last 7 days
    """
    try:
        return {"status": "success", "data": SegmentationService().get_segments()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching customer segments: {str(e)}")


@router.get("/customers/{user_id}")
async def get_customer_detail(user_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        return {"status": "success", "data": SegmentationService().get_customer_detail(user_id)}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching customer: {str(e)}")


# ========================================
# Offline customers
# ========================================

@router.get("/offline-customers")
async def get_offline_customers(
    search: Optional[str] = Query(None, description="Name or phone"),
    admin: TokenUser = Depends(require_admin)
):
    try:
        customers = SegmentationService().list_offline(search)

        return {
            "status": "success",
            "count": len(customers),
            "data": [c.to_dict() for c in customers]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching offline customers: {str(e)}")


@router.post("/offline-customers", status_code=201)
async def create_offline_customer(data: OfflineCustomerCreate, admin: TokenUser = Depends(require_admin)):
    try:
        customer = SegmentationService().create_offline(data, created_by=admin.id)
        return {"status": "success", "data": customer.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating offline customer: {str(e)}")


@router.put("/offline-customers/{customer_id}")
async def update_offline_customer(
    customer_id: str,
    data: OfflineCustomerUpdate,
    admin: TokenUser = Depends(require_admin)
):
    try:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        customer = SegmentationService().update_offline(customer_id, updates)
        return {"status": "success", "data": customer.to_dict()}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating offline customer: {str(e)}")


@router.delete("/offline-customers/{customer_id}")
async def delete_offline_customer(customer_id: str, admin: TokenUser = Depends(require_admin)):
    try:
        SegmentationService().delete_offline(customer_id)
        return {"status": "success", "message": "Offline customer deleted"}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting offline customer: {str(e)}")


# ========================================
# Sales reports
# ========================================

@router.get("/reports/sales")
async def get_sales_report(
    report_type: str = Query("weekly", description="weekly or monthly"),
    admin: TokenUser = Depends(require_admin)
):
    try:
        return {"status": "success", "data": ReportService().build_report(report_type)}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building sales report: {str(e)}")


@router.get("/reports/sales/csv")
async def download_sales_report_csv(
    report_type: str = Query("weekly", description="weekly or monthly"),
    admin: TokenUser = Depends(require_admin)
):
    try:
        service = ReportService()
        report = service.build_report(report_type)
        filename = f"sales_report_{report_type}_{report['end_date']}.csv"

        return Response(
            content=service.to_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"}
        )

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error exporting sales report: {str(e)}")


@router.get("/reports/sales/excel")
async def download_sales_report_excel(
    report_type: str = Query("weekly", description="weekly or monthly"),
    admin: TokenUser = Depends(require_admin)
):
    try:
        service = ReportService()
        report = service.build_report(report_type)
        excel_file = service.to_excel(report)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"sales_report_{report_type}_{timestamp}.xlsx"

        return StreamingResponse(
            excel_file,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={filename}"}
        )

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error exporting sales report: {str(e)}")


@router.post("/reports/sales/email")
async def email_sales_report(request: ReportEmailRequest, admin: TokenUser = Depends(require_admin)):
    """Email the report to the given address, or ADMIN_EMAIL"""
    try:
        service = ReportService()
        report = service.build_report(request.report_type)
        sent = await service.email_report(report, request.to)

        return {"status": "success", "data": {"email_sent": sent, "report": report}}

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error emailing sales report: {str(e)}")


# ========================================
# Weekly reminders
# ========================================

@router.post("/reminders/weekly")
async def send_weekly_reminders(admin: TokenUser = Depends(require_admin)):
    """Email every active subscriber; meant for a weekly scheduler"""
    try:
        result = await SubscriptionService().send_weekly_reminders()
        return {"status": "success", "data": result}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sending weekly reminders: {str(e)}")
