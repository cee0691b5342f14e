"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and order items.
Returns Order domain models.

Author: TM3
Date: 2026-02-12
"""
from typing import List, Optional, Tuple, Dict
from datetime import date

from produce_store.domain.order import Order, OrderItem, OrderStatus, PaymentStatus
from produce_store.core.database import get_db_connection_dict

ORDER_COLUMNS = """
    id, order_number, user_id, delivery_name, delivery_phone, delivery_address,
    delivery_slot, order_date, notes, subtotal, delivery_charge, total,
    payment_method, payment_status, payment_verified_at, payment_screenshot_url,
    upi_reference, razorpay_order_id, status, created_at, updated_at
"""


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    """

    @staticmethod
    def _map_row_to_order(row: dict) -> Order:
        return Order(
            id=str(row['id']),
            order_number=row['order_number'],
            user_id=str(row['user_id']) if row.get('user_id') else None,
            delivery_name=row['delivery_name'],
            delivery_phone=row['delivery_phone'],
            delivery_address=row['delivery_address'],
            delivery_slot=row.get('delivery_slot'),
            order_date=row['order_date'],
            notes=row.get('notes'),
            subtotal=row['subtotal'],
            delivery_charge=row.get('delivery_charge') or 0,
            total=row['total'],
            payment_method=row['payment_method'],
            payment_status=row['payment_status'],
            payment_verified_at=row.get('payment_verified_at'),
            payment_screenshot_url=row.get('payment_screenshot_url'),
            upi_reference=row.get('upi_reference'),
            razorpay_order_id=row.get('razorpay_order_id'),
            status=row['status'],
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    @staticmethod
    def _map_row_to_item(row: dict) -> OrderItem:
        return OrderItem(
            id=str(row['id']),
            order_id=str(row['order_id']),
            product_id=str(row['product_id']) if row.get('product_id') else None,
            product_name=row['product_name'],
            quantity=row['quantity'],
            unit_price=row['unit_price'],
            total_price=row['total_price']
        )

    def _attach_items(self, cursor, orders: List[Order]):
        """Load items for many orders with a single query"""
        if not orders:
            return

        by_id: Dict[str, Order] = {o.id: o for o in orders}
        cursor.execute("""
            SELECT id, order_id, product_id, product_name, quantity, unit_price, total_price
            FROM order_items
            WHERE order_id = ANY(%s::uuid[])
            ORDER BY created_at, product_name
        """, (list(by_id.keys()),))

        for row in cursor.fetchall():
            item = self._map_row_to_item(row)
            if item.order_id in by_id:
                by_id[item.order_id].items.append(item)

    def create(self, order_data: dict, items: List[OrderItem]) -> Order:
        """
        Create an order with its items in one transaction.

        The order number is drawn from the generate_order_number()
        database function.

        Args:
            order_data: Column values for the orders row (no id/order_number)
            items: Line items; order_id is filled in here

        Returns:
            The created Order with items
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT generate_order_number() as order_number")
            order_number = cursor.fetchone()['order_number']

            values = dict(order_data, order_number=order_number)
            columns = ", ".join(values.keys())
            placeholders = ", ".join(["%s"] * len(values))

            cursor.execute(f"""
                INSERT INTO orders ({columns})
                VALUES ({placeholders})
                RETURNING {ORDER_COLUMNS}
            """, list(values.values()))
            order = self._map_row_to_order(cursor.fetchone())

            for item in items:
                cursor.execute("""
                    INSERT INTO order_items
                        (order_id, product_id, product_name, quantity, unit_price, total_price)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING id, order_id, product_id, product_name, quantity, unit_price, total_price
                """, (
                    order.id, item.product_id, item.product_name,
                    item.quantity, item.unit_price, item.total_price
                ))
                order.items.append(self._map_row_to_item(cursor.fetchone()))

            conn.commit()
            return order

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, order_id: str, user_id: Optional[str] = None) -> Optional[Order]:
        """
        Find order by ID, with items

        Args:
            order_id: Order uuid
            user_id: When given, only return the order if it belongs to this user
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = %s"
            params = [order_id]
            if user_id:
                query += " AND user_id = %s"
                params.append(user_id)

            cursor.execute(query, params)
            row = cursor.fetchone()
            if not row:
                return None

            order = self._map_row_to_order(row)
            self._attach_items(cursor, [order])
            return order

        finally:
            cursor.close()
            conn.close()

    def find_by_user(self, user_id: str, limit: int = 50, offset: int = 0) -> List[Order]:
        """A customer's orders, newest first, with items"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, (user_id, limit, offset))

            orders = [self._map_row_to_order(r) for r in cursor.fetchall()]
            self._attach_items(cursor, orders)
            return orders

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters (admin)

        Args:
            status: Order status
            payment_status: Payment status
            from_date / to_date: Inclusive created_at date range
            search: Order number, recipient name or phone
            limit / offset: Pagination

        Returns:
            Tuple of (list of orders with items, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("status = %s")
                params.append(status)

            if payment_status:
                conditions.append("payment_status = %s")
                params.append(payment_status)

            if from_date:
                conditions.append("created_at::date >= %s")
                params.append(from_date)

            if to_date:
                conditions.append("created_at::date <= %s")
                params.append(to_date)

            if search:
                conditions.append(
                    "(order_number ILIKE %s OR delivery_name ILIKE %s OR delivery_phone ILIKE %s)"
                )
                search_term = f"%{search}%"
                params.extend([search_term, search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM orders
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            orders = [self._map_row_to_order(r) for r in cursor.fetchall()]
            self._attach_items(cursor, orders)
            return orders, total

        finally:
            cursor.close()
            conn.close()

    def update_status(
        self,
        order_id: str,
        from_status: OrderStatus,
        to_status: OrderStatus
    ) -> Optional[Order]:
        """
        Move an order from one status to another.

        The UPDATE is conditional on the current status so a concurrent
        change makes this return None instead of overwriting it.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE orders
                SET status = %s, updated_at = NOW()
                WHERE id = %s AND status = %s
                RETURNING {ORDER_COLUMNS}
            """, (OrderStatus(to_status).value, order_id, OrderStatus(from_status).value))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_order(row) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_payment_status(
        self,
        order_id: str,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        upi_reference: Optional[str] = None
    ) -> Optional[Order]:
        """Change payment status; reaching paid stamps payment_verified_at"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            to_status = PaymentStatus(to_status)
            verified_at = "NOW()" if to_status == PaymentStatus.PAID else "payment_verified_at"

            cursor.execute(f"""
                UPDATE orders
                SET payment_status = %s,
                    payment_verified_at = {verified_at},
                    upi_reference = COALESCE(%s, upi_reference),
                    updated_at = NOW()
                WHERE id = %s AND payment_status = %s
                RETURNING {ORDER_COLUMNS}
            """, (to_status.value, upi_reference, order_id, PaymentStatus(from_status).value))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_order(row) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def set_gateway_order(self, order_id: str, razorpay_order_id: str) -> bool:
        """
        Bind the Razorpay order a payment has to be made against.

        Returns:
            False when the order is already paid or cancelled
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE orders
                SET razorpay_order_id = %s, updated_at = NOW()
                WHERE id = %s AND payment_status <> 'paid' AND status <> 'cancelled'
            """, (razorpay_order_id, order_id))
            conn.commit()
            return cursor.rowcount > 0

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def mark_paid(self, order_id: str, razorpay_order_id: str, payment_reference: str) -> Optional[Order]:
        """
        Record a verified online payment: paid + confirmed.

        Only an unpaid, non-cancelled order bound to razorpay_order_id is
        updated; anything else returns None.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE orders
                SET payment_status = 'paid',
                    status = CASE WHEN status = 'pending' THEN 'confirmed' ELSE status END,
                    upi_reference = %s,
                    payment_verified_at = NOW(),
                    updated_at = NOW()
                WHERE id = %s
                  AND razorpay_order_id = %s
                  AND payment_status <> 'paid'
                  AND status <> 'cancelled'
                RETURNING {ORDER_COLUMNS}
            """, (payment_reference, order_id, razorpay_order_id))

            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None

            order = self._map_row_to_order(row)
            self._attach_items(cursor, [order])
            return order

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def get_stats(self) -> dict:
        """
        Order counts per status and revenue

        Revenue excludes cancelled orders.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) as total_orders,
                    COUNT(*) FILTER (WHERE status = 'pending') as pending,
                    COUNT(*) FILTER (WHERE status = 'confirmed') as confirmed,
                    COUNT(*) FILTER (WHERE status = 'preparing') as preparing,
                    COUNT(*) FILTER (WHERE status = 'out_for_delivery') as out_for_delivery,
                    COUNT(*) FILTER (WHERE status = 'delivered') as delivered,
                    COUNT(*) FILTER (WHERE status = 'cancelled') as cancelled,
                    COALESCE(SUM(total) FILTER (WHERE status <> 'cancelled'), 0) as revenue,
                    COUNT(*) FILTER (WHERE payment_status = 'paid') as paid
                FROM orders
            """)
            stats = dict(cursor.fetchone())
            stats['revenue'] = float(stats['revenue'])
            return stats

        finally:
            cursor.close()
            conn.close()
