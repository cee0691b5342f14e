"""
Banner Repository - Data Access Layer for Promotional Banners

Author: TM3
Date: 2026-02-18
"""
from typing import List, Optional

from produce_store.domain.preorder import PromotionalBanner, BannerCreate
from produce_store.core.database import get_db_connection_dict, build_set_clause

BANNER_COLUMNS = """
    id, title, subtitle, description, product_name, badge_text, cta_text,
    cta_link, image_url, background_color, text_color, display_order,
    is_active, start_date, end_date, payment_required, price_per_unit, unit,
    created_at, updated_at
"""


class BannerRepository:
    """Repository for promotional_banners"""

    @staticmethod
    def _map_row_to_banner(row: dict) -> PromotionalBanner:
        data = dict(row)
        data['id'] = str(data['id'])
        data['display_order'] = data.get('display_order') or 0
        data['payment_required'] = bool(data.get('payment_required'))
        data['is_active'] = bool(data.get('is_active'))
        return PromotionalBanner(**data)

    def find_all(self, active_only: bool = False) -> List[PromotionalBanner]:
        """
        Banners ordered by display_order

        Args:
            active_only: Only banners flagged active (date window is
                checked by the caller against the store's today)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where = "WHERE is_active = true" if active_only else ""
            cursor.execute(f"""
                SELECT {BANNER_COLUMNS}
                FROM promotional_banners
                {where}
                ORDER BY display_order, created_at
            """)
            return [self._map_row_to_banner(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, banner_id: str) -> Optional[PromotionalBanner]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {BANNER_COLUMNS} FROM promotional_banners WHERE id = %s",
                (banner_id,)
            )
            row = cursor.fetchone()
            return self._map_row_to_banner(row) if row else None
        finally:
            cursor.close()
            conn.close()

    def create(self, data: BannerCreate) -> PromotionalBanner:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            values = data.model_dump()
            columns = ", ".join(values.keys())
            placeholders = ", ".join(["%s"] * len(values))
            cursor.execute(f"""
                INSERT INTO promotional_banners ({columns})
                VALUES ({placeholders})
                RETURNING {BANNER_COLUMNS}
            """, list(values.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_banner(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, banner_id: str, updates: dict) -> Optional[PromotionalBanner]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE promotional_banners SET {set_clause}
                WHERE id = %s
                RETURNING {BANNER_COLUMNS}
            """, params + [banner_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_banner(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, banner_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM promotional_banners WHERE id = %s", (banner_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()
