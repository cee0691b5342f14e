"""
OTP Repository - Data Access Layer for order verification codes

Codes are stored hashed in order_otp_verifications.otp_code.

Author: TM3
Date: 2026-02-24
"""
from typing import Optional
from datetime import datetime

from produce_store.core.database import get_db_connection_dict

OTP_COLUMNS = "id, user_id, email, otp_code, expires_at, verified, failed_attempts, created_at"


class OtpRepository:
    """Repository for order_otp_verifications"""

    def count_recent(self, user_id: str, since: datetime) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT COUNT(*) as total
                FROM order_otp_verifications
                WHERE user_id = %s AND created_at >= %s
            """, (user_id, since))
            return cursor.fetchone()['total']
        finally:
            cursor.close()
            conn.close()

    def replace(self, user_id: str, email: str, code_hash: str, expires_at: datetime) -> str:
        """Delete the user's previous codes and store a new one"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM order_otp_verifications WHERE user_id = %s", (user_id,))
            cursor.execute("""
                INSERT INTO order_otp_verifications
                    (user_id, email, otp_code, expires_at, verified, failed_attempts)
                VALUES (%s, %s, %s, %s, false, 0)
                RETURNING id
            """, (user_id, email, code_hash, expires_at))
            otp_id = str(cursor.fetchone()['id'])
            conn.commit()
            return otp_id
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_active(self, user_id: str) -> Optional[dict]:
        """The user's current unverified code"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {OTP_COLUMNS}
                FROM order_otp_verifications
                WHERE user_id = %s AND verified = false
                ORDER BY created_at DESC
                LIMIT 1
            """, (user_id,))
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def increment_failures(self, otp_id: str) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE order_otp_verifications
                SET failed_attempts = COALESCE(failed_attempts, 0) + 1
                WHERE id = %s
                RETURNING failed_attempts
            """, (otp_id,))
            row = cursor.fetchone()
            conn.commit()
            return row['failed_attempts'] if row else 0
        finally:
            cursor.close()
            conn.close()

    def mark_verified(self, otp_id: str):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE order_otp_verifications
                SET verified = true, failed_attempts = 0
                WHERE id = %s
            """, (otp_id,))
            conn.commit()
        finally:
            cursor.close()
            conn.close()

    def delete(self, otp_id: str):
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM order_otp_verifications WHERE id = %s", (otp_id,))
            conn.commit()
        finally:
            cursor.close()
            conn.close()
