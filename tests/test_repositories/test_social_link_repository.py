"""
Unit tests for SocialLinkRepository
"""
from unittest.mock import patch

from produce_store.domain.catalog import SocialLinkCreate
from produce_store.repositories.social_link_repository import SocialLinkRepository


def _link_row(**overrides):
    row = {
        'id': 'link-1',
        'platform': 'Instagram',
        'url': 'https://instagram.com/mangostore',
        'icon': 'instagram',
        'display_order': None,
        'is_visible': True,
        'created_at': None,
        'updated_at': None,
    }
    row.update(overrides)
    return row


class TestSocialLinkRepository:

    @patch('produce_store.repositories.social_link_repository.get_db_connection_dict')
    def test_storefront_sees_only_visible_links_in_order(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [_link_row()]

        # Act
        links = SocialLinkRepository().find_all(visible_only=True)

        # Assert
        sql = mock_cursor.execute.call_args[0][0]
        assert "WHERE is_visible = true" in sql
        assert "ORDER BY display_order" in sql
        assert links[0].display_order == 0
        mock_conn.close.assert_called_once()

    @patch('produce_store.repositories.social_link_repository.get_db_connection_dict')
    def test_admin_list_includes_hidden(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = [_link_row(is_visible=False)]

        links = SocialLinkRepository().find_all()

        assert "is_visible = true" not in mock_cursor.execute.call_args[0][0]
        assert links[0].is_visible is False

    @patch('produce_store.repositories.social_link_repository.get_db_connection_dict')
    def test_create_derives_icon_from_platform(self, mock_get_conn, mock_db):
        # Arrange
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _link_row(platform='WhatsApp', icon='whatsapp')

        # Act
        link = SocialLinkRepository().create(
            SocialLinkCreate(platform='WhatsApp ', url='https://wa.me/919876543210')
        )

        # Assert
        sql, params = mock_cursor.execute.call_args[0]
        assert "INSERT INTO social_links" in sql
        assert params[:3] == ['WhatsApp', 'https://wa.me/919876543210', 'whatsapp']
        assert link.platform == 'WhatsApp'
        mock_conn.commit.assert_called_once()

    @patch('produce_store.repositories.social_link_repository.get_db_connection_dict')
    def test_update_missing_link_returns_none(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        result = SocialLinkRepository().update('missing', {'is_visible': False})

        assert result is None
        sql, params = mock_cursor.execute.call_args[0]
        assert "is_visible = %s, updated_at = NOW()" in sql
        assert params == [False, 'missing']

    @patch('produce_store.repositories.social_link_repository.get_db_connection_dict')
    def test_delete_reports_whether_a_row_went(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 0

        assert SocialLinkRepository().delete('link-9') is False
