"""
Analytics Repository - Telemetry writes and reporting queries

Writes the append-only telemetry tables (page_visits, product_views,
user_activity_logs, error_logs) and runs the aggregate queries behind
the admin dashboard, trend charts and sales reports.

Author: TM3
Date: 2026-02-20
"""
from typing import List, Optional, Dict
from datetime import date, datetime

from psycopg2.extras import Json

from produce_store.core.database import get_db_connection_dict


class AnalyticsRepository:
    """Repository for telemetry tables and order aggregates"""

    # ------------------------------------------------------------------
    # Telemetry writes
    # ------------------------------------------------------------------

    def insert_page_visit(
        self,
        session_id: str,
        page_path: str,
        user_id: Optional[str] = None,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None
    ):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO page_visits (session_id, page_path, user_id, referrer, user_agent, ip_address)
                VALUES (%s, %s, %s, %s, %s, %s)
            """, (session_id, page_path, user_id, referrer, user_agent, ip_address))
            conn.commit()
        finally:
            cursor.close()
            conn.close()

    def insert_product_view(
        self,
        session_id: str,
        product_id: str,
        user_id: Optional[str] = None,
        view_duration_seconds: Optional[int] = None
    ):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO product_views (session_id, product_id, user_id, view_duration_seconds)
                VALUES (%s, %s, %s, %s)
            """, (session_id, product_id, user_id, view_duration_seconds))
            conn.commit()
        finally:
            cursor.close()
            conn.close()

    def insert_activity(
        self,
        action_type: str,
        user_id: Optional[str] = None,
        action_details: Optional[dict] = None,
        page_path: Optional[str] = None
    ):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO user_activity_logs (action_type, user_id, action_details, page_path)
                VALUES (%s, %s, %s, %s)
            """, (
                action_type,
                user_id,
                Json(action_details) if action_details is not None else None,
                page_path
            ))
            conn.commit()
        finally:
            cursor.close()
            conn.close()

    def insert_error(
        self,
        error_message: str,
        error_type: Optional[str] = None,
        error_stack: Optional[str] = None,
        page_path: Optional[str] = None,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        additional_context: Optional[dict] = None
    ) -> str:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO error_logs
                    (error_message, error_type, error_stack, page_path, user_id,
                     session_id, user_agent, additional_context)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                error_message, error_type, error_stack, page_path, user_id,
                session_id, user_agent,
                Json(additional_context) if additional_context is not None else None
            ))
            error_id = str(cursor.fetchone()['id'])
            conn.commit()
            return error_id
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Log viewer
    # ------------------------------------------------------------------

    def find_activity_logs(self, action_type: Optional[str] = None, limit: int = 100) -> List[dict]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = """
                SELECT id, user_id, action_type, action_details, page_path, created_at
                FROM user_activity_logs
            """
            params = []
            if action_type:
                query += " WHERE action_type = %s"
                params.append(action_type)
            query += " ORDER BY created_at DESC LIMIT %s"
            params.append(limit)

            cursor.execute(query, params)
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_error_logs(self, error_type: Optional[str] = None, limit: int = 100) -> List[dict]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = """
                SELECT id, user_id, session_id, error_type, error_message, error_stack,
                       page_path, user_agent, additional_context, created_at
                FROM error_logs
            """
            params = []
            if error_type:
                query += " WHERE error_type = %s"
                params.append(error_type)
            query += " ORDER BY created_at DESC LIMIT %s"
            params.append(limit)

            cursor.execute(query, params)
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Dashboard aggregates
    # ------------------------------------------------------------------

    def get_order_totals(self, today: date) -> dict:
        """
        Headline order numbers for the dashboard

        Revenue sums exclude cancelled orders.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) as total_orders,
                    COALESCE(SUM(total) FILTER (WHERE status <> 'cancelled'), 0) as total_revenue,
                    COUNT(*) FILTER (WHERE status = 'pending') as pending_orders,
                    COUNT(*) FILTER (WHERE status = 'delivered') as delivered_orders,
                    COUNT(*) FILTER (WHERE created_at::date = %s) as today_orders,
                    COALESCE(SUM(total) FILTER (
                        WHERE created_at::date = %s AND status <> 'cancelled'
                    ), 0) as today_revenue
                FROM orders
            """, (today, today))
            return dict(cursor.fetchone())
        finally:
            cursor.close()
            conn.close()

    def get_top_products(
        self,
        limit: int = 5,
        order_by: str = "quantity",
        since: Optional[datetime] = None
    ) -> List[dict]:
        """
        Best-selling products from order_items of non-cancelled orders

        Args:
            limit: How many products
            order_by: "quantity" or "revenue"
            since: Only orders created at or after this moment
        """
        sort_column = "revenue" if order_by == "revenue" else "quantity"

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["o.status <> 'cancelled'"]
            params = []
            if since:
                conditions.append("o.created_at >= %s")
                params.append(since)

            cursor.execute(f"""
                SELECT
                    oi.product_name,
                    SUM(oi.quantity) as quantity,
                    COALESCE(SUM(oi.total_price), 0) as revenue
                FROM order_items oi
                JOIN orders o ON o.id = oi.order_id
                WHERE {" AND ".join(conditions)}
                GROUP BY oi.product_name
                ORDER BY {sort_column} DESC, oi.product_name
                LIMIT %s
            """, params + [limit])
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def get_daily_sessions(self, start_date: date) -> Dict[date, int]:
        """Unique visitor sessions per day since start_date"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT created_at::date as day, COUNT(DISTINCT session_id) as visitors
                FROM page_visits
                WHERE created_at::date >= %s
                GROUP BY created_at::date
            """, (start_date,))
            return {r['day']: r['visitors'] for r in cursor.fetchall()}
        finally:
            cursor.close()
            conn.close()

    def get_daily_orders(
        self,
        start_date: date,
        end_date: Optional[date] = None,
        include_cancelled: bool = False
    ) -> Dict[date, dict]:
        """Order count and revenue per day"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["created_at::date >= %s"]
            if not include_cancelled:
                conditions.append("status <> 'cancelled'")
            params = [start_date]
            if end_date:
                conditions.append("created_at::date <= %s")
                params.append(end_date)

            cursor.execute(f"""
                SELECT created_at::date as day,
                       COUNT(*) as orders,
                       COALESCE(SUM(total), 0) as revenue
                FROM orders
                WHERE {" AND ".join(conditions)}
                GROUP BY created_at::date
            """, params)
            return {
                r['day']: {"orders": r['orders'], "revenue": r['revenue']}
                for r in cursor.fetchall()
            }
        finally:
            cursor.close()
            conn.close()

    def get_visitor_stats(self, start_date: date, today: date) -> dict:
        """
        Visitor counters for the analytics overview

        Returns:
            unique_visitors_today, unique_visitors, logged_in_visitors,
            page_views, product_views, errors, new_signups
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(DISTINCT session_id) FILTER (WHERE created_at::date = %s) as unique_visitors_today,
                    COUNT(DISTINCT session_id) as unique_visitors,
                    COUNT(DISTINCT user_id) as logged_in_visitors,
                    COUNT(*) as page_views
                FROM page_visits
                WHERE created_at::date >= %s
            """, (today, start_date))
            stats = dict(cursor.fetchone())

            cursor.execute(
                "SELECT COUNT(*) as total FROM product_views WHERE created_at::date >= %s",
                (start_date,)
            )
            stats['product_views'] = cursor.fetchone()['total']

            cursor.execute(
                "SELECT COUNT(*) as total FROM error_logs WHERE created_at::date >= %s",
                (start_date,)
            )
            stats['errors'] = cursor.fetchone()['total']

            cursor.execute(
                "SELECT COUNT(*) as total FROM profiles WHERE created_at::date >= %s",
                (start_date,)
            )
            stats['new_signups'] = cursor.fetchone()['total']

            return stats
        finally:
            cursor.close()
            conn.close()

    def get_top_viewed_products(self, start_date: date, limit: int = 10) -> List[dict]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT pv.product_id, p.name as product_name, COUNT(*) as views
                FROM product_views pv
                LEFT JOIN products p ON p.id = pv.product_id
                WHERE pv.created_at::date >= %s
                GROUP BY pv.product_id, p.name
                ORDER BY views DESC
                LIMIT %s
            """, (start_date, limit))
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def get_page_view_stats(self, start_date: date, limit: int = 20) -> List[dict]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT page_path, COUNT(*) as views, COUNT(DISTINCT session_id) as visitors
                FROM page_visits
                WHERE created_at::date >= %s
                GROUP BY page_path
                ORDER BY views DESC
                LIMIT %s
            """, (start_date, limit))
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Sales report
    # ------------------------------------------------------------------

    def get_sales_summary(self, start: datetime, end: datetime) -> dict:
        """
        Orders created in [start, end]

        Returns:
            total_orders and total_revenue over every order in range (the
            status breakdown shows cancellations separately), plus
            orders_by_status as a dict
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT status, COUNT(*) as orders, COALESCE(SUM(total), 0) as revenue
                FROM orders
                WHERE created_at >= %s AND created_at <= %s
                GROUP BY status
            """, (start, end))
            rows = cursor.fetchall()

            return {
                "total_orders": sum(r['orders'] for r in rows),
                "total_revenue": sum((r['revenue'] for r in rows), 0),
                "orders_by_status": {r['status']: r['orders'] for r in rows},
            }
        finally:
            cursor.close()
            conn.close()

    def get_product_sales(self, start: datetime, end: datetime, limit: int = 10) -> List[dict]:
        """Quantity and revenue per product for orders created in [start, end]"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    oi.product_name,
                    SUM(oi.quantity) as quantity,
                    COALESCE(SUM(oi.total_price), 0) as revenue
                FROM order_items oi
                JOIN orders o ON o.id = oi.order_id
                WHERE o.created_at >= %s AND o.created_at <= %s
                GROUP BY oi.product_name
                ORDER BY revenue DESC, oi.product_name
                LIMIT %s
            """, (start, end, limit))
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def get_order_rows(self, start: datetime, end: datetime) -> List[dict]:
        """Flat order rows for CSV / Excel export"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT order_number, created_at, delivery_name, delivery_phone,
                       status, payment_method, payment_status, subtotal,
                       delivery_charge, total
                FROM orders
                WHERE created_at >= %s AND created_at <= %s
                ORDER BY created_at
            """, (start, end))
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()
