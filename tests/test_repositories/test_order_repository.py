"""
Unit tests for OrderRepository
"""
import pytest
from unittest.mock import patch
from datetime import date, datetime
from decimal import Decimal

from produce_store.repositories.order_repository import OrderRepository
from produce_store.domain.order import OrderItem, OrderStatus, PaymentStatus


def _order_row(**overrides):
    row = {
        'id': 'order-1',
        'order_number': 'CF-20260217-0001',
        'user_id': 'user-1',
        'delivery_name': 'Asha',
        'delivery_phone': '9876543210',
        'delivery_address': '12 Civil Lines, 440001',
        'delivery_slot': '7:00 AM - 10:00 AM',
        'order_date': date(2026, 2, 17),
        'notes': None,
        'subtotal': Decimal('450'),
        'delivery_charge': None,
        'total': Decimal('450'),
        'payment_method': 'cod',
        'payment_status': 'pending',
        'payment_verified_at': None,
        'payment_screenshot_url': None,
        'upi_reference': None,
        'status': 'pending',
        'created_at': datetime(2026, 2, 16, 9, 30),
        'updated_at': None,
    }
    row.update(overrides)
    return row


def _item_row():
    return {
        'id': 'item-1',
        'order_id': 'order-1',
        'product_id': 'prod-1',
        'product_name': 'Alphonso Mango',
        'quantity': 1,
        'unit_price': Decimal('450'),
        'total_price': Decimal('450'),
    }


class TestOrderRepository:
    """Test OrderRepository methods"""

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_create_writes_order_and_items_in_one_transaction(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [
            {'order_number': 'CF-20260217-0001'},
            _order_row(),
            _item_row(),
        ]
        items = [OrderItem(
            product_id='prod-1', product_name='Alphonso Mango', quantity=1,
            unit_price=Decimal('450'), total_price=Decimal('450')
        )]

        # Act
        order = OrderRepository().create({
            'user_id': 'user-1',
            'delivery_name': 'Asha',
            'subtotal': Decimal('450'),
            'total': Decimal('450'),
        }, items)

        # Assert
        assert order.order_number == 'CF-20260217-0001'
        assert order.delivery_charge == Decimal('0')
        assert len(order.items) == 1
        assert order.items[0].order_id == 'order-1'

        insert_sql, insert_params = mock_cursor.execute.call_args_list[1][0]
        assert "INSERT INTO orders" in insert_sql
        assert 'CF-20260217-0001' in insert_params
        mock_conn.commit.assert_called_once()
        mock_conn.rollback.assert_not_called()

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_create_rolls_back_when_an_item_fails(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [
            {'order_number': 'CF-20260217-0001'},
            _order_row(),
        ]
        mock_cursor.execute.side_effect = [None, None, Exception("foreign key violation")]
        items = [OrderItem(
            product_id='prod-1', product_name='Alphonso Mango', quantity=1,
            unit_price=Decimal('450'), total_price=Decimal('450')
        )]

        # Act / Assert
        with pytest.raises(Exception, match="foreign key violation"):
            OrderRepository().create({'user_id': 'user-1'}, items)

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_update_status_is_conditional_on_current_status(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _order_row(status='confirmed')

        # Act
        order = OrderRepository().update_status('order-1', OrderStatus.PENDING, OrderStatus.CONFIRMED)

        # Assert
        assert order.status == OrderStatus.CONFIRMED
        sql, params = mock_cursor.execute.call_args[0]
        assert "WHERE id = %s AND status = %s" in sql
        assert params == ('confirmed', 'order-1', 'pending')

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_update_status_returns_none_when_status_moved_on(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act
        order = OrderRepository().update_status('order-1', OrderStatus.PENDING, OrderStatus.CONFIRMED)

        # Assert
        assert order is None

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_paid_payment_stamps_verified_at(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _order_row(payment_status='paid', upi_reference='UPI123')

        # Act
        order = OrderRepository().update_payment_status(
            'order-1', PaymentStatus.PENDING, PaymentStatus.PAID, 'UPI123'
        )

        # Assert
        assert order.payment_status == PaymentStatus.PAID
        sql = mock_cursor.execute.call_args[0][0]
        assert "payment_verified_at = NOW()" in sql

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_mark_paid_requires_bound_gateway_order_and_unpaid(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _order_row(
            payment_method='online', payment_status='paid', status='confirmed',
            razorpay_order_id='order_rzp_1', upi_reference='pay_1'
        )
        mock_cursor.fetchall.return_value = []

        # Act
        order = OrderRepository().mark_paid('order-1', 'order_rzp_1', 'pay_1')

        # Assert
        assert order.status == OrderStatus.CONFIRMED
        assert order.razorpay_order_id == 'order_rzp_1'
        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert "razorpay_order_id = %s" in sql
        assert "payment_status <> 'paid'" in sql
        assert params == ('pay_1', 'order-1', 'order_rzp_1')

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_mark_paid_on_already_paid_order_changes_nothing(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        order = OrderRepository().mark_paid('order-1', 'order_rzp_1', 'pay_2')

        assert order is None
        mock_cursor.execute.assert_called_once()

    @patch('produce_store.repositories.order_repository.get_db_connection_dict')
    def test_set_gateway_order_skips_paid_orders(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 0

        bound = OrderRepository().set_gateway_order('order-1', 'order_rzp_2')

        assert bound is False
        sql, params = mock_cursor.execute.call_args[0]
        assert "payment_status <> 'paid'" in sql
        assert params == ('order_rzp_2', 'order-1')
