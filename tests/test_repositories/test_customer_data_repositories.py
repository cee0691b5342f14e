"""
Unit tests for the address, settings, pre-order, OTP and offline customer repositories
"""
import pytest
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from produce_store.domain.address import AddressCreate
from produce_store.domain.customer import OfflineCustomerCreate
from produce_store.domain.preorder import PreOrder
from produce_store.repositories.address_repository import AddressRepository
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.repositories.otp_repository import OtpRepository
from produce_store.repositories.preorder_repository import PreOrderRepository
from produce_store.repositories.settings_repository import SettingsRepository


def _address_row(**overrides):
    row = {
        'id': 'addr-1',
        'user_id': 'user-1',
        'label': None,
        'full_name': 'Asha',
        'phone': '9876543210',
        'address': '12 Civil Lines',
        'city': 'Nagpur',
        'pincode': '440001',
        'is_default': True,
        'created_at': None,
        'updated_at': None,
    }
    row.update(overrides)
    return row


class TestAddressRepository:

    @patch('produce_store.repositories.address_repository.get_db_connection_dict')
    def test_create_default_clears_other_defaults_first(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _address_row()
        data = AddressCreate(
            full_name='Asha', phone='9876543210', address='12 Civil Lines',
            pincode='440 001', is_default=True
        )

        # Act
        address = AddressRepository().create('user-1', data)

        # Assert
        assert address.label == 'Home'
        assert address.is_default is True
        clear_sql, clear_params = mock_cursor.execute.call_args_list[0][0]
        assert "SET is_default = false" in clear_sql
        assert clear_params == ('user-1',)
        insert_params = mock_cursor.execute.call_args_list[1][0][1]
        assert '440001' in insert_params
        mock_conn.commit.assert_called_once()

    @patch('produce_store.repositories.address_repository.get_db_connection_dict')
    def test_create_non_default_leaves_others(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _address_row(is_default=False)
        data = AddressCreate(full_name='Asha', phone='9876543210', address='12 Civil Lines', pincode='440001')

        # Act
        AddressRepository().create('user-1', data)

        # Assert
        mock_cursor.execute.assert_called_once()

    @patch('produce_store.repositories.address_repository.get_db_connection_dict')
    def test_update_of_another_users_address_returns_none(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act
        address = AddressRepository().update('addr-1', 'user-2', {'label': 'Work'})

        # Assert
        assert address is None
        sql, params = mock_cursor.execute.call_args[0]
        assert "WHERE id = %s AND user_id = %s" in sql
        assert params == ['Work', 'addr-1', 'user-2']
        mock_conn.rollback.assert_called_once()


class TestSettingsRepository:

    @patch('produce_store.repositories.settings_repository.get_db_connection_dict')
    def test_missing_row_gives_defaults(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act
        site = SettingsRepository().get()

        # Assert
        assert site.id == 'default'
        assert site.order_days == ['tuesday', 'friday']
        assert site.delivery_rate_per_km is None

    @patch('produce_store.repositories.settings_repository.get_db_connection_dict')
    def test_null_columns_fall_back_to_defaults(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {
            'id': 'default',
            'delivery_rate_per_km': Decimal('12'),
            'free_delivery_threshold': None,
            'order_days': ['Friday'],
            'delivery_time_slot': None,
        }

        # Act
        site = SettingsRepository().get()

        # Assert
        assert site.delivery_rate_per_km == Decimal('12')
        assert site.order_days == ['friday']
        assert site.delivery_time_slot == '7:00 AM - 10:00 AM'

    @patch('produce_store.repositories.settings_repository.get_db_connection_dict')
    def test_update_creates_row_if_missing(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'id': 'default', 'map_url': 'https://maps.example/x'}

        # Act
        site = SettingsRepository().update({'map_url': 'https://maps.example/x'})

        # Assert
        assert site.map_url == 'https://maps.example/x'
        assert "ON CONFLICT (id) DO NOTHING" in mock_cursor.execute.call_args_list[0][0][0]
        mock_conn.commit.assert_called_once()


class TestPreOrderRepository:

    def _pre_order(self):
        return PreOrder(
            id='pre-1', user_id='user-1', product_name='Alphonso Mango',
            quantity=2, customer_name='Asha', customer_phone='9876543210'
        )

    @patch('produce_store.repositories.preorder_repository.get_db_connection_dict')
    def test_confirm_writes_notification(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 1

        # Act
        confirmed = PreOrderRepository().confirm_with_notification(self._pre_order(), "In stock")

        # Assert
        assert confirmed is True
        assert mock_cursor.execute.call_count == 2
        insert_params = mock_cursor.execute.call_args_list[1][0][1]
        assert insert_params == ('user-1', 'pre-1', 'Alphonso Mango', 'In stock')
        mock_conn.commit.assert_called_once()

    @patch('produce_store.repositories.preorder_repository.get_db_connection_dict')
    def test_confirm_skips_when_no_longer_pending(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 0

        # Act
        confirmed = PreOrderRepository().confirm_with_notification(self._pre_order(), "In stock")

        # Assert
        assert confirmed is False
        mock_cursor.execute.assert_called_once()
        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    @patch('produce_store.repositories.preorder_repository.get_db_connection_dict')
    def test_mark_paid_only_from_pending_payment(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        # Act: a not_required reservation matches no row
        paid = PreOrderRepository().mark_paid('pre-1', 'order_rzp_1', 'pay_1')

        # Assert
        assert paid is None
        sql, params = mock_cursor.execute.call_args[0]
        assert "payment_status = 'pending'" in sql
        assert "razorpay_order_id = %s" in sql
        assert params == ('pay_1', 'pre-1', 'order_rzp_1')


class TestOtpRepository:

    @patch('produce_store.repositories.otp_repository.get_db_connection_dict')
    def test_replace_deletes_previous_codes(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'id': 'otp-2'}
        expires = datetime.now(timezone.utc) + timedelta(minutes=10)

        # Act
        otp_id = OtpRepository().replace('user-1', 'asha@example.com', 'hashed', expires)

        # Assert
        assert otp_id == 'otp-2'
        delete_sql = mock_cursor.execute.call_args_list[0][0][0]
        assert delete_sql.startswith("DELETE FROM order_otp_verifications")
        mock_conn.commit.assert_called_once()

    @patch('produce_store.repositories.otp_repository.get_db_connection_dict')
    def test_increment_failures_returns_new_count(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'failed_attempts': 3}

        # Act / Assert
        assert OtpRepository().increment_failures('otp-1') == 3


def _offline_row(**overrides):
    row = {
        'id': 'off-1',
        'full_name': 'Ramesh Patil',
        'phone': '9822012345',
        'email': None,
        'address': 'Sitabuldi Market',
        'pincode': '440012',
        'notes': None,
        'created_by': 'admin-1',
        'created_at': None,
        'updated_at': None,
    }
    row.update(overrides)
    return row


class TestOfflineCustomerRepository:

    @patch('produce_store.repositories.customer_repository.get_db_connection_dict')
    def test_create_records_the_admin(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _offline_row()
        data = OfflineCustomerCreate(
            full_name='Ramesh Patil', phone='9822012345',
            address='Sitabuldi Market', pincode='440012'
        )

        # Act
        customer = CustomerRepository().create_offline(data, created_by='admin-1')

        # Assert
        sql, params = mock_cursor.execute.call_args[0]
        assert "INSERT INTO offline_customers" in sql
        assert params == ('Ramesh Patil', '9822012345', None, 'Sitabuldi Market', '440012', None, 'admin-1')
        assert customer.id == 'off-1'
        assert customer.created_by == 'admin-1'
        mock_conn.commit.assert_called_once()

    @patch('produce_store.repositories.customer_repository.get_db_connection_dict')
    def test_create_failure_rolls_back(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.execute.side_effect = Exception("duplicate key")

        # Act
        with pytest.raises(Exception, match="duplicate key"):
            CustomerRepository().create_offline(
                OfflineCustomerCreate(full_name='Ramesh', phone='9822012345'), created_by=None
            )

        # Assert
        mock_conn.rollback.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('produce_store.repositories.customer_repository.get_db_connection_dict')
    def test_update_only_touches_given_fields(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _offline_row(notes='Buys every Friday')

        # Act
        customer = CustomerRepository().update_offline('off-1', {'notes': 'Buys every Friday'})

        # Assert
        sql, params = mock_cursor.execute.call_args[0]
        assert "SET notes = %s, updated_at = NOW()" in sql
        assert params == ['Buys every Friday', 'off-1']
        assert customer.notes == 'Buys every Friday'

    @patch('produce_store.repositories.customer_repository.get_db_connection_dict')
    def test_update_missing_customer_returns_none(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        assert CustomerRepository().update_offline('missing', {'phone': '9822012345'}) is None

    @patch('produce_store.repositories.customer_repository.get_db_connection_dict')
    def test_delete(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 1

        # Act
        deleted = CustomerRepository().delete_offline('off-1')

        # Assert
        assert deleted is True
        sql, params = mock_cursor.execute.call_args[0]
        assert sql == "DELETE FROM offline_customers WHERE id = %s"
        assert params == ('off-1',)

    @patch('produce_store.repositories.customer_repository.get_db_connection_dict')
    def test_delete_missing_customer(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 0

        assert CustomerRepository().delete_offline('missing') is False
