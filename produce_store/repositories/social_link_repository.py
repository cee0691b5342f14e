"""
Social Link Repository - Data Access Layer for the storefront's social links

Author: TM3
Date: 2026-02-20
"""
from typing import List, Optional

from produce_store.domain.catalog import SocialLink, SocialLinkCreate
from produce_store.core.database import get_db_connection_dict, build_set_clause

SOCIAL_LINK_COLUMNS = "id, platform, url, icon, display_order, is_visible, created_at, updated_at"


class SocialLinkRepository:
    """Repository for social_links"""

    @staticmethod
    def _map_row_to_link(row: dict) -> SocialLink:
        data = dict(row)
        data['id'] = str(data['id'])
        data['display_order'] = data.get('display_order') or 0
        data['is_visible'] = bool(data.get('is_visible'))
        return SocialLink(**data)

    def find_all(self, visible_only: bool = False) -> List[SocialLink]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where = "WHERE is_visible = true" if visible_only else ""
            cursor.execute(f"""
                SELECT {SOCIAL_LINK_COLUMNS}
                FROM social_links
                {where}
                ORDER BY display_order, created_at
            """)
            return [self._map_row_to_link(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def create(self, data: SocialLinkCreate) -> SocialLink:
        """Insert a link; icon defaults to the lower-cased platform name"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            values = data.model_dump()
            values['platform'] = values['platform'].strip()
            values['icon'] = values.get('icon') or values['platform'].lower()
            columns = ", ".join(values.keys())
            placeholders = ", ".join(["%s"] * len(values))
            cursor.execute(f"""
                INSERT INTO social_links ({columns})
                VALUES ({placeholders})
                RETURNING {SOCIAL_LINK_COLUMNS}
            """, list(values.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_link(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, link_id: str, updates: dict) -> Optional[SocialLink]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE social_links SET {set_clause}
                WHERE id = %s
                RETURNING {SOCIAL_LINK_COLUMNS}
            """, params + [link_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_link(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, link_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM social_links WHERE id = %s", (link_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()
