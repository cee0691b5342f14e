"""
Customer Repository - Data Access Layer for customers

Covers registered profiles (plus their auth email), offline customers
and weekly reminder subscriptions.

Author: TM3
Date: 2026-02-20
"""
from typing import List, Optional
from datetime import datetime

from produce_store.domain.customer import (
    Profile, CustomerStats, OfflineCustomer, OfflineCustomerCreate, WeeklySubscription
)
from produce_store.core.database import get_db_connection_dict, build_set_clause

PROFILE_COLUMNS = "id, user_id, full_name, phone, address, city, pincode, created_at, updated_at"
OFFLINE_COLUMNS = """
    id, full_name, phone, email, address, pincode, notes, created_by, created_at, updated_at
"""
SUBSCRIPTION_COLUMNS = "id, user_id, email, phone, is_active, created_at, updated_at"


class CustomerRepository:
    """Repository for profiles, offline_customers and weekly_subscriptions"""

    @staticmethod
    def _map_row_to_profile(row: dict) -> Profile:
        data = dict(row)
        data['id'] = str(data['id'])
        data['user_id'] = str(data['user_id'])
        return Profile(**data)

    @staticmethod
    def _map_row_to_offline(row: dict) -> OfflineCustomer:
        data = dict(row)
        data['id'] = str(data['id'])
        data['created_by'] = str(data['created_by']) if data.get('created_by') else None
        return OfflineCustomer(**data)

    @staticmethod
    def _map_row_to_subscription(row: dict) -> WeeklySubscription:
        data = dict(row)
        data['id'] = str(data['id'])
        data['user_id'] = str(data['user_id']) if data.get('user_id') else None
        return WeeklySubscription(**data)

    # ------------------------------------------------------------------
    # Registered customers
    # ------------------------------------------------------------------

    def get_user_email(self, user_id: str) -> Optional[str]:
        """Account email from Supabase auth.users"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT email FROM auth.users WHERE id = %s", (user_id,))
            row = cursor.fetchone()
            return row['email'] if row else None
        finally:
            cursor.close()
            conn.close()

    def find_profile(self, user_id: str) -> Optional[Profile]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE user_id = %s", (user_id,))
            row = cursor.fetchone()
            return self._map_row_to_profile(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def find_customer_stats(self) -> List[CustomerStats]:
        """
        One row per profile with stats over non-cancelled orders.

        days_since_last_order is computed in the database from NOW().
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    p.user_id,
                    p.full_name,
                    p.phone,
                    u.email,
                    p.created_at,
                    COUNT(o.id) as order_count,
                    COALESCE(SUM(o.total), 0) as total_spent,
                    MAX(o.created_at) as last_order_date,
                    EXTRACT(DAY FROM NOW() - MAX(o.created_at))::int as days_since_last_order
                FROM profiles p
                LEFT JOIN auth.users u ON u.id = p.user_id
                LEFT JOIN orders o ON o.user_id = p.user_id AND o.status <> 'cancelled'
                GROUP BY p.user_id, p.full_name, p.phone, u.email, p.created_at
                ORDER BY total_spent DESC
            """)
            return [
                CustomerStats(
                    user_id=str(r['user_id']),
                    full_name=r.get('full_name'),
                    phone=r.get('phone'),
                    email=r.get('email'),
                    created_at=r.get('created_at'),
                    order_count=r['order_count'],
                    total_spent=r['total_spent'],
                    last_order_date=r.get('last_order_date'),
                    days_since_last_order=r.get('days_since_last_order')
                )
                for r in cursor.fetchall()
            ]
        finally:
            cursor.close()
            conn.close()

    def count_new_profiles(self, since: datetime) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT COUNT(*) as total FROM profiles WHERE created_at >= %s",
                (since,)
            )
            return cursor.fetchone()['total']
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Offline customers
    # ------------------------------------------------------------------

    def find_offline(self, search: Optional[str] = None) -> List[OfflineCustomer]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = f"SELECT {OFFLINE_COLUMNS} FROM offline_customers"
            params = []
            if search:
                query += " WHERE full_name ILIKE %s OR phone ILIKE %s"
                search_term = f"%{search}%"
                params.extend([search_term, search_term])
            query += " ORDER BY created_at DESC"

            cursor.execute(query, params)
            return [self._map_row_to_offline(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def create_offline(self, data: OfflineCustomerCreate, created_by: Optional[str]) -> OfflineCustomer:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO offline_customers
                    (full_name, phone, email, address, pincode, notes, created_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING {OFFLINE_COLUMNS}
            """, (
                data.full_name, data.phone, data.email, data.address,
                data.pincode, data.notes, created_by
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_offline(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_offline(self, customer_id: str, updates: dict) -> Optional[OfflineCustomer]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE offline_customers SET {set_clause}
                WHERE id = %s
                RETURNING {OFFLINE_COLUMNS}
            """, params + [customer_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_offline(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_offline(self, customer_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM offline_customers WHERE id = %s", (customer_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Weekly reminder subscriptions
    # ------------------------------------------------------------------

    def find_subscription(self, user_id: str) -> Optional[WeeklySubscription]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {SUBSCRIPTION_COLUMNS} FROM weekly_subscriptions WHERE user_id = %s",
                (user_id,)
            )
            row = cursor.fetchone()
            return self._map_row_to_subscription(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def upsert_subscription(
        self,
        user_id: str,
        email: str,
        phone: Optional[str],
        is_active: bool
    ) -> WeeklySubscription:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO weekly_subscriptions (user_id, email, phone, is_active)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (user_id) DO UPDATE
                SET email = EXCLUDED.email,
                    phone = COALESCE(EXCLUDED.phone, weekly_subscriptions.phone),
                    is_active = EXCLUDED.is_active,
                    updated_at = NOW()
                RETURNING {SUBSCRIPTION_COLUMNS}
            """, (user_id, email, phone, is_active))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_subscription(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_active_subscriptions(self) -> List[WeeklySubscription]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {SUBSCRIPTION_COLUMNS}
                FROM weekly_subscriptions
                WHERE is_active = true
                ORDER BY created_at
            """)
            return [self._map_row_to_subscription(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()
