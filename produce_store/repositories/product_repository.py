"""
Product Repository - Data Access Layer for Products

Handles all database queries for products, their variants and the
stock notifications raised by inventory edits. Returns Product domain
models.

Author: TM3
Date: 2026-02-11
"""
import logging
from typing import List, Optional, Tuple, Dict

from produce_store.domain.product import (
    Product, ProductVariant, ProductCreate, VariantCreate, stock_change_message
)
from produce_store.core.database import (
    get_db_connection_dict, get_db_connection_dict_with_retry, build_set_clause
)

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = """
    id, name, price, unit, description, category, subcategory,
    image_url, image_urls, stock_quantity, is_available, is_hidden,
    is_bestseller, is_fresh_today, discount_enabled, discount_type,
    discount_value, created_at, updated_at
"""

VARIANT_COLUMNS = """
    id, product_id, name, price, stock_quantity, is_available,
    display_order, created_at, updated_at
"""


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products and variants are centralized here.
    Returns domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Map a products row, normalizing nullable flags to False"""
        return Product(
            id=str(row['id']),
            name=row['name'],
            price=row['price'],
            unit=row.get('unit') or 'kg',
            description=row.get('description'),
            category=row.get('category'),
            subcategory=row.get('subcategory'),
            image_url=row.get('image_url'),
            image_urls=row.get('image_urls') or [],
            stock_quantity=row.get('stock_quantity'),
            is_available=row.get('is_available') is not False,
            is_hidden=bool(row.get('is_hidden')),
            is_bestseller=bool(row.get('is_bestseller')),
            is_fresh_today=bool(row.get('is_fresh_today')),
            discount_enabled=bool(row.get('discount_enabled')),
            discount_type=row.get('discount_type'),
            discount_value=row.get('discount_value'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    @staticmethod
    def _map_row_to_variant(row: dict) -> ProductVariant:
        return ProductVariant(
            id=str(row['id']),
            product_id=str(row['product_id']),
            name=row['name'],
            price=row['price'],
            stock_quantity=row.get('stock_quantity'),
            is_available=row.get('is_available') is not False,
            display_order=row.get('display_order') or 0,
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    def find_by_id(self, product_id: str, with_variants: bool = True) -> Optional[Product]:
        """
        Find product by ID

        Args:
            product_id: Product uuid
            with_variants: Also load variants ordered by display_order

        Returns:
            Product or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None

            product = self._map_row_to_product(row)

            if with_variants:
                cursor.execute(f"""
                    SELECT {VARIANT_COLUMNS}
                    FROM product_variants
                    WHERE product_id = %s
                    ORDER BY display_order, name
                """, (product_id,))
                product.variants = [self._map_row_to_variant(r) for r in cursor.fetchall()]

            return product

        finally:
            cursor.close()
            conn.close()

    def find_by_ids(self, product_ids: List[str]) -> Dict[str, Product]:
        """
        Load several products with their variants in two queries

        Returns:
            Dict of product_id -> Product (missing ids are simply absent)
        """
        if not product_ids:
            return {}

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE id = ANY(%s::uuid[])
            """, (list(product_ids),))
            products = {str(r['id']): self._map_row_to_product(r) for r in cursor.fetchall()}

            if products:
                cursor.execute(f"""
                    SELECT {VARIANT_COLUMNS}
                    FROM product_variants
                    WHERE product_id = ANY(%s::uuid[])
                    ORDER BY display_order, name
                """, (list(products.keys()),))
                for row in cursor.fetchall():
                    variant = self._map_row_to_variant(row)
                    if variant.product_id in products:
                        products[variant.product_id].variants.append(variant)

            return products

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        search: Optional[str] = None,
        include_hidden: bool = False,
        available_only: bool = False,
        bestsellers_only: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            category: Filter by category slug
            subcategory: Filter by subcategory slug
            search: Search in name or description
            include_hidden: Include hidden products (admin listings)
            available_only: Only products marked available
            bestsellers_only: Only bestseller products
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if not include_hidden:
                conditions.append("COALESCE(is_hidden, false) = false")

            if category:
                conditions.append("category = %s")
                params.append(category)

            if subcategory:
                conditions.append("subcategory = %s")
                params.append(subcategory)

            if available_only:
                conditions.append("COALESCE(is_available, true) = true")

            if bestsellers_only:
                conditions.append("is_bestseller = true")

            if search:
                conditions.append("(name ILIKE %s OR description ILIKE %s)")
                search_term = f"%{search}%"
                params.extend([search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE {where_clause}
                ORDER BY name
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            products = [self._map_row_to_product(row) for row in cursor.fetchall()]

            return products, total

        finally:
            cursor.close()
            conn.close()

    def create(self, data: ProductCreate) -> Product:
        """Insert a product and return it"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            values = data.model_dump()
            columns = ", ".join(values.keys())
            placeholders = ", ".join(["%s"] * len(values))

            cursor.execute(f"""
                INSERT INTO products ({columns})
                VALUES ({placeholders})
                RETURNING {PRODUCT_COLUMNS}
            """, list(values.values()))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: str, updates: dict) -> Optional[Product]:
        """
        Apply a partial update.

        When stock_quantity or is_available is part of the update, a
        stock_notifications row is written in the same transaction.

        Returns:
            Updated product, or None if it doesn't exist
        """
        if not updates:
            return self.find_by_id(product_id, with_variants=False)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE products
                SET {set_clause}
                WHERE id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, params + [product_id])

            row = cursor.fetchone()
            if not row:
                conn.rollback()
                return None

            product = self._map_row_to_product(row)

            if 'stock_quantity' in updates or 'is_available' in updates:
                message = stock_change_message(
                    product.name,
                    product.unit,
                    updates.get('stock_quantity'),
                    updates.get('is_available')
                )
                if message:
                    cursor.execute("""
                        INSERT INTO stock_notifications (product_id, message)
                        VALUES (%s, %s)
                    """, (product_id, message))
                    logger.info(f"Stock notification for {product.name}: {message}")

            conn.commit()
            return product

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def find_variants(self, product_id: str, available_only: bool = False) -> List[ProductVariant]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            availability = "AND COALESCE(is_available, true) = true" if available_only else ""
            cursor.execute(f"""
                SELECT {VARIANT_COLUMNS}
                FROM product_variants
                WHERE product_id = %s {availability}
                ORDER BY display_order, name
            """, (product_id,))
            return [self._map_row_to_variant(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def create_variant(self, product_id: str, data: VariantCreate) -> ProductVariant:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO product_variants
                    (product_id, name, price, stock_quantity, is_available, display_order)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {VARIANT_COLUMNS}
            """, (
                product_id, data.name, data.price, data.stock_quantity,
                data.is_available, data.display_order
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_variant(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_variant(self, variant_id: str, updates: dict) -> Optional[ProductVariant]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause, params = build_set_clause(updates)
            cursor.execute(f"""
                UPDATE product_variants
                SET {set_clause}
                WHERE id = %s
                RETURNING {VARIANT_COLUMNS}
            """, params + [variant_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_variant(row) if row else None
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_variant(self, variant_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM product_variants WHERE id = %s", (variant_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Stock notifications
    # ------------------------------------------------------------------

    def find_stock_notifications(self, unread_only: bool = False, limit: int = 50) -> List[dict]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            unread = "WHERE COALESCE(sn.is_read, false) = false" if unread_only else ""
            cursor.execute(f"""
                SELECT sn.id, sn.product_id, sn.message, sn.is_read, sn.created_at,
                       p.name as product_name
                FROM stock_notifications sn
                LEFT JOIN products p ON p.id = sn.product_id
                {unread}
                ORDER BY sn.created_at DESC
                LIMIT %s
            """, (limit,))
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def mark_stock_notifications_read(self) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE stock_notifications
                SET is_read = true
                WHERE COALESCE(is_read, false) = false
            """)
            updated = cursor.rowcount
            conn.commit()
            return updated
        finally:
            cursor.close()
            conn.close()

    def get_stock_summary(self, low_stock_threshold: int = 5) -> dict:
        """
        Inventory totals across all products

        Returns:
            Dict with total_products, in_stock, out_of_stock, low_stock,
            hidden, total_units and stock_value
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) as total_products,
                    COUNT(*) FILTER (
                        WHERE COALESCE(is_available, true) AND COALESCE(stock_quantity, 1) > 0
                    ) as in_stock,
                    COUNT(*) FILTER (
                        WHERE is_available = false OR stock_quantity = 0
                    ) as out_of_stock,
                    COUNT(*) FILTER (
                        WHERE stock_quantity > 0 AND stock_quantity <= %s
                    ) as low_stock,
                    COUNT(*) FILTER (WHERE is_hidden = true) as hidden,
                    COALESCE(SUM(stock_quantity), 0) as total_units,
                    COALESCE(SUM(stock_quantity * price), 0) as stock_value
                FROM products
            """, (low_stock_threshold,))

            result = cursor.fetchone()
            return dict(result) if result else {}
        finally:
            cursor.close()
            conn.close()

    def find_stock_rows(self) -> List[Dict]:
        """
        Every product with its current stock, by category then name

        Plain dicts for the inventory sheets. Retries the connection since
        uploads run long after a cold start.
        """
        conn = get_db_connection_dict_with_retry()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, name, category, unit, price, stock_quantity, is_available, is_hidden
                FROM products
                ORDER BY category NULLS LAST, name
            """)
            return [dict(r) for r in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()
