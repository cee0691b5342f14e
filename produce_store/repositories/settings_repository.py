"""
Settings Repository - Data Access Layer for site settings and delivery zones

Author: TM3
Date: 2026-02-12
"""
import logging
from typing import List

from produce_store.domain.settings import SiteSettings, SETTINGS_ROW_ID
from produce_store.domain.delivery import DeliveryZone
from produce_store.core.database import get_db_connection_dict, build_set_clause

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Repository for the single site_settings row and delivery_zones"""

    @staticmethod
    def _map_row_to_settings(row: dict) -> SiteSettings:
        data = {k: v for k, v in dict(row).items() if v is not None}
        data['id'] = str(data.get('id', SETTINGS_ROW_ID))
        return SiteSettings(**data)

    def get(self) -> SiteSettings:
        """The settings row, or defaults when it hasn't been created yet"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT * FROM site_settings WHERE id = %s", (SETTINGS_ROW_ID,))
            row = cursor.fetchone()
            if not row:
                logger.warning("site_settings row missing, using defaults")
                return SiteSettings()
            return self._map_row_to_settings(row)
        finally:
            cursor.close()
            conn.close()

    def update(self, updates: dict) -> SiteSettings:
        """Update the settings row, creating it first if needed"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO site_settings (id) VALUES (%s)
                ON CONFLICT (id) DO NOTHING
            """, (SETTINGS_ROW_ID,))

            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE site_settings SET {set_clause}
                WHERE id = %s
                RETURNING *
            """, params + [SETTINGS_ROW_ID])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_settings(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def find_delivery_zones(self, active_only: bool = True) -> List[DeliveryZone]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where = "WHERE is_active = true" if active_only else ""
            cursor.execute(f"""
                SELECT id, zone_name, min_distance_km, max_distance_km, delivery_charge, is_active
                FROM delivery_zones
                {where}
                ORDER BY min_distance_km
            """)
            return [
                DeliveryZone(
                    id=str(r['id']),
                    zone_name=r['zone_name'],
                    min_distance_km=r['min_distance_km'],
                    max_distance_km=r['max_distance_km'],
                    delivery_charge=r['delivery_charge'],
                    is_active=bool(r['is_active'])
                )
                for r in cursor.fetchall()
            ]
        finally:
            cursor.close()
            conn.close()
