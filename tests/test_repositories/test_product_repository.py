"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2026-02-11
"""
from unittest.mock import patch
from datetime import datetime
from decimal import Decimal

from produce_store.repositories.product_repository import ProductRepository
from produce_store.domain.product import Product


def _product_row(**overrides):
    row = {
        'id': 'prod-1',
        'name': 'Alphonso Mango',
        'price': Decimal('500.00'),
        'unit': 'dozen',
        'description': 'Ratnagiri Alphonso',
        'category': 'mangoes',
        'subcategory': None,
        'image_url': None,
        'image_urls': None,
        'stock_quantity': 12,
        'is_available': None,
        'is_hidden': None,
        'is_bestseller': True,
        'is_fresh_today': None,
        'discount_enabled': None,
        'discount_type': None,
        'discount_value': None,
        'created_at': datetime(2026, 2, 1, 8, 0),
        'updated_at': None,
    }
    row.update(overrides)
    return row


class TestProductRepository:
    """Test ProductRepository methods"""

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_find_by_id_returns_product_with_variants(self, mock_get_conn, mock_db):
        """find_by_id maps the row and loads variants"""
        # Arrange: Mock database connection
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _product_row()
        mock_cursor.fetchall.return_value = [{
            'id': 'var-1', 'product_id': 'prod-1', 'name': 'Half dozen',
            'price': Decimal('260'), 'stock_quantity': None, 'is_available': True,
            'display_order': None, 'created_at': None, 'updated_at': None,
        }]

        # Act
        product = ProductRepository().find_by_id('prod-1')

        # Assert: Nullable flags are normalized
        assert isinstance(product, Product)
        assert product.is_available is True
        assert product.is_hidden is False
        assert product.image_urls == []
        assert len(product.variants) == 1
        assert product.variants[0].display_order == 0

        assert mock_cursor.execute.call_count == 2
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_find_by_id_returns_none_when_not_found(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act
        product = ProductRepository().find_by_id('missing')

        # Assert
        assert product is None
        mock_cursor.execute.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_find_all_hides_hidden_products_by_default(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'total': 1}
        mock_cursor.fetchall.return_value = [_product_row()]

        # Act
        products, total = ProductRepository().find_all(category='mangoes', search='alph')

        # Assert
        assert total == 1
        assert len(products) == 1
        count_sql, count_params = mock_cursor.execute.call_args_list[0][0]
        assert "COALESCE(is_hidden, false) = false" in count_sql
        assert count_params == ['mangoes', '%alph%', '%alph%']

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_update_stock_writes_notification(self, mock_get_conn, mock_db):
        """A stock change inserts a stock_notifications row in the same transaction"""
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _product_row(stock_quantity=8)

        # Act
        product = ProductRepository().update('prod-1', {'stock_quantity': 8})

        # Assert
        assert product.stock_quantity == 8
        insert_sql, insert_params = mock_cursor.execute.call_args_list[1][0]
        assert "INSERT INTO stock_notifications" in insert_sql
        assert insert_params == ('prod-1', 'Alphonso Mango is back in stock! 8 dozen(s) available')
        mock_conn.commit.assert_called_once()

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_update_price_writes_no_notification(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _product_row(price=Decimal('450'))

        # Act
        ProductRepository().update('prod-1', {'price': Decimal('450')})

        # Assert
        mock_cursor.execute.assert_called_once()
        update_sql = mock_cursor.execute.call_args[0][0]
        assert "price = %s" in update_sql
        assert "updated_at = NOW()" in update_sql

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_update_missing_product_rolls_back(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act
        product = ProductRepository().update('missing', {'is_available': False})

        # Assert
        assert product is None
        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    @patch('produce_store.repositories.product_repository.get_db_connection_dict')
    def test_find_by_ids_skips_query_for_empty_list(self, mock_get_conn):
        assert ProductRepository().find_by_ids([]) == {}
        mock_get_conn.assert_not_called()

    @patch('produce_store.repositories.product_repository.get_db_connection_dict_with_retry')
    def test_find_stock_rows_returns_plain_dicts(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [
            {'id': 'prod-1', 'name': 'Alphonso Mango', 'category': 'mangoes', 'unit': 'dozen',
             'price': Decimal('500'), 'stock_quantity': 10, 'is_available': True, 'is_hidden': False}
        ]

        # Act
        rows = ProductRepository().find_stock_rows()

        # Assert
        assert rows[0]['stock_quantity'] == 10
        assert "ORDER BY category NULLS LAST, name" in mock_cursor.execute.call_args[0][0]
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()
