"""
User Role Repository - app_role lookups (admin, customer)

Author: TM3
Date: 2026-02-11
"""
from produce_store.core.database import get_db_connection_dict


class UserRoleRepository:
    """Repository for user_roles"""

    def has_role(self, user_id: str, role: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT EXISTS (
                    SELECT 1 FROM user_roles
                    WHERE user_id = %s AND role = %s
                ) as has_role
            """, (user_id, role))
            row = cursor.fetchone()
            return bool(row and row['has_role'])
        finally:
            cursor.close()
            conn.close()
