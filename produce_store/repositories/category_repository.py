"""
Category Repository - Data Access Layer for Categories

Categories and their subcategories, always returned sorted by
display_order.

Author: TM3
Date: 2026-02-11
"""
from typing import List, Optional

from produce_store.domain.catalog import Category, Subcategory, CategoryCreate, SubcategoryCreate
from produce_store.core.database import get_db_connection_dict, build_set_clause

CATEGORY_COLUMNS = "id, name, slug, icon, display_order, is_hidden, created_at, updated_at"
SUBCATEGORY_COLUMNS = "id, category_id, name, slug, display_order, is_hidden, created_at, updated_at"


class CategoryRepository:
    """Repository for categories and subcategories"""

    @staticmethod
    def _map_row_to_category(row: dict) -> Category:
        return Category(
            id=str(row['id']),
            name=row['name'],
            slug=row['slug'],
            icon=row.get('icon') or "🥭",
            display_order=row.get('display_order') or 0,
            is_hidden=bool(row.get('is_hidden')),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    @staticmethod
    def _map_row_to_subcategory(row: dict) -> Subcategory:
        return Subcategory(
            id=str(row['id']),
            category_id=str(row['category_id']),
            name=row['name'],
            slug=row['slug'],
            display_order=row.get('display_order') or 0,
            is_hidden=bool(row.get('is_hidden')),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    def find_all(self, include_hidden: bool = False) -> List[Category]:
        """
        All categories with nested subcategories

        Args:
            include_hidden: Keep hidden categories and subcategories (admin)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                ORDER BY display_order, name
            """)
            categories = [self._map_row_to_category(r) for r in cursor.fetchall()]

            cursor.execute(f"""
                SELECT {SUBCATEGORY_COLUMNS}
                FROM subcategories
                ORDER BY display_order, name
            """)
            by_category = {c.id: c for c in categories}
            for row in cursor.fetchall():
                sub = self._map_row_to_subcategory(row)
                if sub.category_id in by_category:
                    by_category[sub.category_id].subcategories.append(sub)

            if include_hidden:
                return categories

            return [c.visible_copy() for c in categories if not c.is_hidden]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, category_id: str) -> Optional[Category]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE id = %s", (category_id,))
            row = cursor.fetchone()
            if not row:
                return None

            category = self._map_row_to_category(row)
            cursor.execute(f"""
                SELECT {SUBCATEGORY_COLUMNS}
                FROM subcategories
                WHERE category_id = %s
                ORDER BY display_order, name
            """, (category_id,))
            category.subcategories = [self._map_row_to_subcategory(r) for r in cursor.fetchall()]
            return category

        finally:
            cursor.close()
            conn.close()

    def create(self, data: CategoryCreate) -> Category:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO categories (name, slug, icon, display_order, is_hidden)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {CATEGORY_COLUMNS}
            """, (data.name, data.slug, data.icon, data.display_order, data.is_hidden))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_category(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, category_id: str, updates: dict) -> Optional[Category]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE categories SET {set_clause}
                WHERE id = %s
                RETURNING {CATEGORY_COLUMNS}
            """, params + [category_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_category(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, category_id: str) -> bool:
        """Delete a category and its subcategories"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM subcategories WHERE category_id = %s", (category_id,))
            cursor.execute("DELETE FROM categories WHERE id = %s", (category_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def create_subcategory(self, category_id: str, data: SubcategoryCreate) -> Subcategory:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO subcategories (category_id, name, slug, display_order, is_hidden)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {SUBCATEGORY_COLUMNS}
            """, (category_id, data.name, data.slug, data.display_order, data.is_hidden))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_subcategory(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_subcategory(self, subcategory_id: str, updates: dict) -> Optional[Subcategory]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE subcategories SET {set_clause}
                WHERE id = %s
                RETURNING {SUBCATEGORY_COLUMNS}
            """, params + [subcategory_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_subcategory(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_subcategory(self, subcategory_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM subcategories WHERE id = %s", (subcategory_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()
