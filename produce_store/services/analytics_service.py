"""
Analytics Service
Admin dashboard numbers, trend charts and the public tracking endpoints

Author: TM3
Date: 2026-02-20
"""
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from produce_store.core.exceptions import ValidationError
from produce_store.domain.analytics import (
    TREND_RANGES, ActivityLogCreate, ErrorLogCreate, PageVisitCreate, ProductViewCreate
)
from produce_store.repositories.analytics_repository import AnalyticsRepository
from produce_store.repositories.order_repository import OrderRepository
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _round_money(value) -> float:
    return round(float(value or 0), 2)


class AnalyticsService:
    """Service for admin analytics and telemetry writes"""

    def __init__(
        self,
        analytics_repo: Optional[AnalyticsRepository] = None,
        order_repo: Optional[OrderRepository] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.analytics_repo = analytics_repo or AnalyticsRepository()
        self.order_repo = order_repo or OrderRepository()
        self.notifications = notifications or NotificationService()

    # ========================================
    # Dashboard
    # ========================================

    def get_dashboard(self, today: Optional[date] = None) -> Dict:
        """
        Headline numbers, 5 most recent orders and top 5 products

        Revenue figures leave out cancelled orders.
        """
        today = today or date.today()
        totals = self.analytics_repo.get_order_totals(today)
        recent, _ = self.order_repo.find_all(limit=5)
        top_products = self.analytics_repo.get_top_products(limit=5, order_by="quantity")

        return {
            "total_orders": totals['total_orders'],
            "total_revenue": _round_money(totals['total_revenue']),
            "pending_orders": totals['pending_orders'],
            "delivered_orders": totals['delivered_orders'],
            "today_orders": totals['today_orders'],
            "today_revenue": _round_money(totals['today_revenue']),
            "recent_orders": [o.to_dict() for o in recent],
            "top_products": [
                {
                    "product_name": p['product_name'],
                    "quantity": int(p['quantity']),
                    "revenue": _round_money(p['revenue']),
                }
                for p in top_products
            ],
        }

    def get_trends(self, days: int, today: Optional[date] = None) -> List[Dict]:
        """
        One entry per day for the last `days` days, today included

        Days without visits or orders are reported as zeros.
        """
        if days not in TREND_RANGES:
            raise ValidationError(f"days must be one of {', '.join(str(d) for d in TREND_RANGES)}")

        today = today or date.today()
        start = today - timedelta(days=days - 1)

        sessions = self.analytics_repo.get_daily_sessions(start)
        orders = self.analytics_repo.get_daily_orders(start)

        trend = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            day_orders = orders.get(day, {})
            trend.append({
                "date": day.isoformat(),
                "visitors": sessions.get(day, 0),
                "orders": day_orders.get('orders', 0),
                "revenue": _round_money(day_orders.get('revenue', 0)),
            })
        return trend

    def get_visitor_stats(self, days: int = 30, today: Optional[date] = None) -> Dict:
        today = today or date.today()
        start = today - timedelta(days=days - 1)
        stats = self.analytics_repo.get_visitor_stats(start, today)
        stats['days'] = days
        return stats

    def get_top_viewed_products(self, days: int = 30, limit: int = 10, today: Optional[date] = None) -> List[Dict]:
        today = today or date.today()
        rows = self.analytics_repo.get_top_viewed_products(today - timedelta(days=days - 1), limit)
        return [
            {
                "product_id": str(r['product_id']),
                "product_name": r.get('product_name') or "Deleted product",
                "views": r['views'],
            }
            for r in rows
        ]

    def get_page_views(self, days: int = 30, limit: int = 20, today: Optional[date] = None) -> List[Dict]:
        today = today or date.today()
        return self.analytics_repo.get_page_view_stats(today - timedelta(days=days - 1), limit)

    # ========================================
    # Tracking
    # ========================================

    def track_page_visit(
        self,
        visit: PageVisitCreate,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None
    ):
        self.analytics_repo.insert_page_visit(
            visit.session_id,
            visit.page_path,
            user_id=user_id,
            referrer=visit.referrer,
            user_agent=visit.user_agent,
            ip_address=ip_address
        )

    def track_product_view(self, view: ProductViewCreate, user_id: Optional[str] = None):
        self.analytics_repo.insert_product_view(
            view.session_id,
            view.product_id,
            user_id=user_id,
            view_duration_seconds=view.view_duration_seconds
        )

    def track_activity(self, activity: ActivityLogCreate, user_id: Optional[str] = None):
        self.analytics_repo.insert_activity(
            activity.action_type,
            user_id=user_id,
            action_details=activity.action_details,
            page_path=activity.page_path
        )

    async def report_error(self, error: ErrorLogCreate, user_id: Optional[str] = None) -> Dict:
        """
        Store a client error; critical ones also alert the admin by email

        Returns:
            {"id": ..., "alert_sent": bool}
        """
        error_id = self.analytics_repo.insert_error(
            error.error_message,
            error_type=error.error_type,
            error_stack=error.error_stack,
            page_path=error.page_path,
            user_id=user_id,
            session_id=error.session_id,
            user_agent=error.user_agent,
            additional_context=error.additional_context
        )

        alert_sent = False
        if error.is_critical:
            logger.error(f"Critical client error on {error.page_path}: {error.error_message}")
            alert_sent = await self.notifications.send_critical_alert(
                dict(error.model_dump(), user_id=user_id)
            )

        return {"id": error_id, "alert_sent": alert_sent}

    # ========================================
    # Log viewer
    # ========================================

    def get_activity_logs(self, action_type: Optional[str] = None, limit: int = 100) -> List[Dict]:
        return self.analytics_repo.find_activity_logs(action_type=action_type, limit=limit)

    def get_error_logs(self, error_type: Optional[str] = None, limit: int = 100) -> List[Dict]:
        return self.analytics_repo.find_error_logs(error_type=error_type, limit=limit)
