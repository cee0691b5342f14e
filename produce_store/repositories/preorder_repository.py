"""
Pre-order Repository - Data Access Layer for Pre-orders

Handles pre_orders and the in-app pre_order_notifications sent when a
reserved product arrives.

Author: TM3
Date: 2026-02-18
"""
from typing import List, Optional, Tuple

from produce_store.domain.preorder import (
    PreOrder, PreOrderStatus, PreOrderNotification
)
from produce_store.core.database import get_db_connection_dict

PREORDER_COLUMNS = """
    id, user_id, banner_id, product_name, quantity, customer_name,
    customer_phone, customer_email, delivery_address, delivery_pincode,
    delivery_distance_km, delivery_charge, payment_amount, payment_status,
    razorpay_order_id, razorpay_payment_id, status, notes, created_at, updated_at
"""

NOTIFICATION_COLUMNS = "id, user_id, pre_order_id, product_name, message, is_read, created_at"


class PreOrderRepository:
    """Repository for pre_orders and pre_order_notifications"""

    @staticmethod
    def _map_row_to_preorder(row: dict) -> PreOrder:
        data = dict(row)
        data['id'] = str(data['id'])
        data['user_id'] = str(data['user_id'])
        data['banner_id'] = str(data['banner_id']) if data.get('banner_id') else None
        return PreOrder(**data)

    @staticmethod
    def _map_row_to_notification(row: dict) -> PreOrderNotification:
        return PreOrderNotification(
            id=str(row['id']),
            user_id=str(row['user_id']),
            pre_order_id=str(row['pre_order_id']) if row.get('pre_order_id') else None,
            product_name=row['product_name'],
            message=row['message'],
            is_read=bool(row.get('is_read')),
            created_at=row.get('created_at')
        )

    def create(self, values: dict) -> PreOrder:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            columns = ", ".join(values.keys())
            placeholders = ", ".join(["%s"] * len(values))
            cursor.execute(f"""
                INSERT INTO pre_orders ({columns})
                VALUES ({placeholders})
                RETURNING {PREORDER_COLUMNS}
            """, list(values.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_preorder(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, pre_order_id: str, user_id: Optional[str] = None) -> Optional[PreOrder]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = f"SELECT {PREORDER_COLUMNS} FROM pre_orders WHERE id = %s"
            params = [pre_order_id]
            if user_id:
                query += " AND user_id = %s"
                params.append(user_id)
            cursor.execute(query, params)
            row = cursor.fetchone()
            return self._map_row_to_preorder(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_by_user(self, user_id: str) -> List[PreOrder]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PREORDER_COLUMNS}
                FROM pre_orders
                WHERE user_id = %s
                ORDER BY created_at DESC
            """, (user_id,))
            return [self._map_row_to_preorder(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        product_name: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[PreOrder], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("status = %s")
                params.append(status)

            if product_name:
                conditions.append("product_name = %s")
                params.append(product_name)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"SELECT COUNT(*) as total FROM pre_orders WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PREORDER_COLUMNS}
                FROM pre_orders
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_preorder(r) for r in cursor.fetchall()], total
        finally:
            cursor.close()
            conn.close()

    def find_pending_for_product(self, product_name: str, banner_id: Optional[str] = None) -> List[PreOrder]:
        """Pending reservations for a product, oldest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = f"""
                SELECT {PREORDER_COLUMNS}
                FROM pre_orders
                WHERE product_name = %s AND status = 'pending'
            """
            params = [product_name]
            if banner_id:
                query += " AND banner_id = %s"
                params.append(banner_id)
            query += " ORDER BY created_at"

            cursor.execute(query, params)
            return [self._map_row_to_preorder(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def get_queue_position(self, pre_order: PreOrder) -> int:
        """1-based position among pending reservations of the same product"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT COUNT(*) as position
                FROM pre_orders
                WHERE product_name = %s
                  AND status = 'pending'
                  AND created_at <= %s
            """, (pre_order.product_name, pre_order.created_at))
            return cursor.fetchone()['position']
        finally:
            cursor.close()
            conn.close()

    def update_status(
        self,
        pre_order_id: str,
        from_status: PreOrderStatus,
        to_status: PreOrderStatus
    ) -> Optional[PreOrder]:
        """Conditional status change; None when the current status moved on"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE pre_orders
                SET status = %s, updated_at = NOW()
                WHERE id = %s AND status = %s
                RETURNING {PREORDER_COLUMNS}
            """, (PreOrderStatus(to_status).value, pre_order_id, PreOrderStatus(from_status).value))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_preorder(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def set_gateway_order(self, pre_order_id: str, razorpay_order_id: str) -> bool:
        """Bind the Razorpay order; False unless payment is still pending"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE pre_orders
                SET razorpay_order_id = %s, updated_at = NOW()
                WHERE id = %s AND payment_status = 'pending' AND status <> 'cancelled'
            """, (razorpay_order_id, pre_order_id))
            conn.commit()
            return cursor.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def mark_paid(self, pre_order_id: str, razorpay_order_id: str, payment_id: str) -> Optional[PreOrder]:
        """Pending payment against the bound Razorpay order -> paid; None otherwise"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE pre_orders
                SET payment_status = 'paid', razorpay_payment_id = %s, updated_at = NOW()
                WHERE id = %s
                  AND razorpay_order_id = %s
                  AND payment_status = 'pending'
                  AND status <> 'cancelled'
                RETURNING {PREORDER_COLUMNS}
            """, (payment_id, pre_order_id, razorpay_order_id))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_preorder(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def confirm_with_notification(self, pre_order: PreOrder, message: str) -> bool:
        """
        Write the in-app notification and confirm the pre-order together.

        Returns:
            False when the pre-order was no longer pending
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE pre_orders
                SET status = 'confirmed', updated_at = NOW()
                WHERE id = %s AND status = 'pending'
            """, (pre_order.id,))
            if cursor.rowcount == 0:
                conn.rollback()
                return False

            cursor.execute("""
                INSERT INTO pre_order_notifications (user_id, pre_order_id, product_name, message)
                VALUES (%s, %s, %s, %s)
            """, (pre_order.user_id, pre_order.id, pre_order.product_name, message))

            conn.commit()
            return True
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_notifications(self, user_id: str, unread_only: bool = False) -> List[PreOrderNotification]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            unread = "AND is_read = false" if unread_only else ""
            cursor.execute(f"""
                SELECT {NOTIFICATION_COLUMNS}
                FROM pre_order_notifications
                WHERE user_id = %s {unread}
                ORDER BY created_at DESC
                LIMIT 50
            """, (user_id,))
            return [self._map_row_to_notification(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def mark_notifications_read(self, user_id: str, notification_id: Optional[str] = None) -> int:
        """Mark one notification, or all of a user's notifications, as read"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = "UPDATE pre_order_notifications SET is_read = true WHERE user_id = %s AND is_read = false"
            params = [user_id]
            if notification_id:
                query += " AND id = %s"
                params.append(notification_id)
            cursor.execute(query, params)
            updated = cursor.rowcount
            conn.commit()
            return updated
        finally:
            cursor.close()
            conn.close()
