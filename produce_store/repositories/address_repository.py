"""
Address Repository - Data Access Layer for the customer address book

At most one address per user carries is_default; setting it on one
address clears it on the others inside the same transaction.

Author: TM3
Date: 2026-02-12
"""
from typing import List, Optional

from produce_store.domain.address import Address, AddressCreate
from produce_store.core.database import get_db_connection_dict, build_set_clause

ADDRESS_COLUMNS = """
    id, user_id, label, full_name, phone, address, city, pincode,
    is_default, created_at, updated_at
"""


class AddressRepository:
    """Repository for user_addresses"""

    @staticmethod
    def _map_row_to_address(row: dict) -> Address:
        return Address(
            id=str(row['id']),
            user_id=str(row['user_id']),
            label=row.get('label') or "Home",
            full_name=row['full_name'],
            phone=row['phone'],
            address=row['address'],
            city=row['city'],
            pincode=row['pincode'],
            is_default=bool(row.get('is_default')),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    def find_by_user(self, user_id: str) -> List[Address]:
        """Addresses ordered default first, then newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ADDRESS_COLUMNS}
                FROM user_addresses
                WHERE user_id = %s
                ORDER BY is_default DESC, created_at DESC
            """, (user_id,))
            return [self._map_row_to_address(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, address_id: str, user_id: str) -> Optional[Address]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ADDRESS_COLUMNS}
                FROM user_addresses
                WHERE id = %s AND user_id = %s
            """, (address_id, user_id))
            row = cursor.fetchone()
            return self._map_row_to_address(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def count_by_user(self, user_id: str) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT COUNT(*) as total FROM user_addresses WHERE user_id = %s",
                (user_id,)
            )
            return cursor.fetchone()['total']
        finally:
            cursor.close()
            conn.close()

    def create(self, user_id: str, data: AddressCreate) -> Address:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if data.is_default:
                cursor.execute("""
                    UPDATE user_addresses SET is_default = false
                    WHERE user_id = %s AND is_default = true
                """, (user_id,))

            cursor.execute(f"""
                INSERT INTO user_addresses
                    (user_id, label, full_name, phone, address, city, pincode, is_default)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {ADDRESS_COLUMNS}
            """, (
                user_id, data.label, data.full_name, data.phone,
                data.address, data.city, data.pincode, data.is_default
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_address(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, address_id: str, user_id: str, updates: dict) -> Optional[Address]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if updates.get('is_default'):
                cursor.execute("""
                    UPDATE user_addresses SET is_default = false
                    WHERE user_id = %s AND id <> %s AND is_default = true
                """, (user_id, address_id))

            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE user_addresses SET {set_clause}
                WHERE id = %s AND user_id = %s
                RETURNING {ADDRESS_COLUMNS}
            """, params + [address_id, user_id])

            row = cursor.fetchone()
            if not row:
                conn.rollback()
                return None

            conn.commit()
            return self._map_row_to_address(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, address_id: str, user_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "DELETE FROM user_addresses WHERE id = %s AND user_id = %s",
                (address_id, user_id)
            )
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()
