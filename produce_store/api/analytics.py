"""
Analytics API Endpoints
Public tracking endpoints and the admin analytics dashboard

Author: TM3
Date: 2026-02-20
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from typing import Optional

from produce_store.core.auth import TokenUser, get_current_user_optional, require_admin
from produce_store.core.exceptions import StoreError
from produce_store.core.rate_limit import endpoint_rate_limit, get_client_ip
from produce_store.domain.analytics import ActivityLogCreate, ErrorLogCreate, PageVisitCreate, ProductViewCreate
from produce_store.services.analytics_service import AnalyticsService

router = APIRouter()


# ========================================
# Tracking (public)
# ========================================

@router.post("/track/page-visit", status_code=201)
async def track_page_visit(
    visit: PageVisitCreate,
    request: Request,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    _: None = Depends(endpoint_rate_limit(60))
):
    try:
        AnalyticsService().track_page_visit(
            visit,
            user_id=user.id if user else None,
            ip_address=get_client_ip(request)
        )
        return {"status": "success"}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error tracking page visit: {str(e)}")


@router.post("/track/product-view", status_code=201)
async def track_product_view(
    view: ProductViewCreate,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    _: None = Depends(endpoint_rate_limit(60))
):
    try:
        AnalyticsService().track_product_view(view, user_id=user.id if user else None)
        return {"status": "success"}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error tracking product view: {str(e)}")


@router.post("/track/activity", status_code=201)
async def track_activity(
    activity: ActivityLogCreate,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    _: None = Depends(endpoint_rate_limit(60))
):
    try:
        AnalyticsService().track_activity(activity, user_id=user.id if user else None)
        return {"status": "success"}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error tracking activity: {str(e)}")


@router.post("/track/error", status_code=201)
async def report_error(
    error: ErrorLogCreate,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    _: None = Depends(endpoint_rate_limit(20))
):
    """Client error report; error_type 'critical' also emails the admin"""
    try:
        result = await AnalyticsService().report_error(error, user_id=user.id if user else None)
        return {"status": "success", "data": result}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error logging error: {str(e)}")


# ========================================
# Dashboard (admin)
# ========================================

@router.get("/dashboard")
async def get_dashboard(admin: TokenUser = Depends(require_admin)):
    """
    Dashboard numbers

    Returns:
    - Order totals and revenue (cancelled orders excluded)
    - Today's orders and revenue
    - 5 most recent orders
    - Top 5 products by quantity sold
    """
    try:
        return {"status": "success", "data": AnalyticsService().get_dashboard()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching dashboard: {str(e)}")


@router.get("/trends")
async def get_trends(
    days: int = Query(7, description="7, 30 or 90"),
    admin: TokenUser = Depends(require_admin)
):
    try:
        trend = AnalyticsService().get_trends(days)

        return {
            "status": "success",
            "days": days,
            "count": len(trend),
            "data": trend
        }

    except HTTPException:
        raise
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching trends: {str(e)}")


@router.get("/visitors")
async def get_visitor_stats(
    days: int = Query(30, ge=1, le=365),
    admin: TokenUser = Depends(require_admin)
):
    try:
        return {"status": "success", "data": AnalyticsService().get_visitor_stats(days)}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching visitor stats: {str(e)}")


@router.get("/top-viewed-products")
async def get_top_viewed_products(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(10, ge=1, le=100),
    admin: TokenUser = Depends(require_admin)
):
    try:
        products = AnalyticsService().get_top_viewed_products(days, limit)

        return {"status": "success", "count": len(products), "data": products}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching top viewed products: {str(e)}")


@router.get("/page-views")
async def get_page_views(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(20, ge=1, le=100),
    admin: TokenUser = Depends(require_admin)
):
    try:
        pages = AnalyticsService().get_page_views(days, limit)

        return {"status": "success", "count": len(pages), "data": pages}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching page views: {str(e)}")


@router.get("/logs/activity")
async def get_activity_logs(
    action_type: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    admin: TokenUser = Depends(require_admin)
):
    try:
        logs = AnalyticsService().get_activity_logs(action_type, limit)

        return {"status": "success", "count": len(logs), "data": logs}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching activity logs: {str(e)}")


@router.get("/logs/errors")
async def get_error_logs(
    error_type: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    admin: TokenUser = Depends(require_admin)
):
    try:
        logs = AnalyticsService().get_error_logs(error_type, limit)

        return {"status": "success", "count": len(logs), "data": logs}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching error logs: {str(e)}")
