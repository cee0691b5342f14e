"""
Unit tests for segmentation, analytics, subscriptions and notification emails
"""
import asyncio
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from produce_store.core.exceptions import ValidationError
from produce_store.domain.analytics import ErrorLogCreate
from produce_store.domain.customer import CustomerStats, WeeklySubscription
from produce_store.domain.settings import SiteSettings
from produce_store.services.analytics_service import AnalyticsService
from produce_store.services.notification_service import NotificationService
from produce_store.services.segmentation_service import segment_customers, vip_threshold
from produce_store.services.subscription_service import SubscriptionService

NOW = datetime(2026, 2, 17, 12, 0, tzinfo=timezone.utc)


def _stats(user_id, spent="0", orders=0, days_since=None, created_at=None):
    return CustomerStats(
        user_id=user_id,
        total_spent=Decimal(spent),
        order_count=orders,
        days_since_last_order=days_since,
        created_at=created_at,
    )


class TestSegmentation:

    def test_vip_threshold_is_top_fifth_cutoff(self):
        # Arrange: 10 customers, top 20% is 2 people
        customers = [_stats("a", "5000", 5), _stats("b", "3000", 3), _stats("c", "2500", 2)]
        customers += [_stats(f"x{i}") for i in range(7)]

        # Act / Assert
        assert vip_threshold(customers) == Decimal("3000")

    def test_vip_threshold_floor(self):
        customers = [_stats("a", "1000", 1), _stats("b", "500", 1), _stats("c")]

        assert vip_threshold(customers) == Decimal("2000")

    def test_no_spenders(self):
        assert vip_threshold([_stats("a"), _stats("b")]) == Decimal("2000")

    def test_segments(self):
        customers = [
            _stats("vip", "5000", 6, days_since=2),
            _stats("dormant", "800", 2, days_since=45),
            _stats("fresh", created_at=datetime(2026, 2, 14, 9, 0)),
            _stats("old", created_at=datetime(2026, 1, 1, tzinfo=timezone.utc)),
        ]

        segments = segment_customers(customers, now=NOW)

        assert [c.user_id for c in segments["vip"]] == ["vip"]
        assert [c.user_id for c in segments["dormant"]] == ["dormant"]
        assert [c.user_id for c in segments["new"]] == ["fresh"]


class TestAnalytics:

    def test_trends_fill_missing_days(self):
        # Arrange
        analytics_repo = MagicMock()
        analytics_repo.get_daily_sessions.return_value = {date(2026, 2, 16): 12}
        analytics_repo.get_daily_orders.return_value = {
            date(2026, 2, 17): {'orders': 2, 'revenue': Decimal('900.50')}
        }
        service = AnalyticsService(analytics_repo=analytics_repo, order_repo=MagicMock(), notifications=MagicMock())

        # Act
        trend = service.get_trends(7, today=date(2026, 2, 17))

        # Assert
        assert len(trend) == 7
        assert trend[0] == {"date": "2026-02-11", "visitors": 0, "orders": 0, "revenue": 0.0}
        assert trend[5]["visitors"] == 12
        assert trend[6]["revenue"] == 900.5
        analytics_repo.get_daily_sessions.assert_called_once_with(date(2026, 2, 11))

    def test_trend_range_is_restricted(self):
        service = AnalyticsService(analytics_repo=MagicMock(), order_repo=MagicMock(), notifications=MagicMock())

        with pytest.raises(ValidationError):
            service.get_trends(14)

    def test_critical_error_alerts_admin(self):
        analytics_repo = MagicMock()
        analytics_repo.insert_error.return_value = "err-1"
        notifications = MagicMock()
        notifications.send_critical_alert = AsyncMock(return_value=True)
        service = AnalyticsService(analytics_repo=analytics_repo, order_repo=MagicMock(), notifications=notifications)

        result = asyncio.run(service.report_error(
            ErrorLogCreate(error_message="Checkout crashed", error_type="critical", page_path="/checkout"),
            user_id="user-1"
        ))

        assert result == {"id": "err-1", "alert_sent": True}
        alert = notifications.send_critical_alert.call_args[0][0]
        assert alert["user_id"] == "user-1"

    def test_ordinary_error_is_only_stored(self):
        notifications = MagicMock()
        notifications.send_critical_alert = AsyncMock()
        service = AnalyticsService(analytics_repo=MagicMock(), order_repo=MagicMock(), notifications=notifications)

        result = asyncio.run(service.report_error(ErrorLogCreate(error_message="Image failed", error_type="network")))

        assert result["alert_sent"] is False
        notifications.send_critical_alert.assert_not_called()


class TestSubscriptions:

    def test_subscribe_uses_account_email(self):
        customer_repo = MagicMock()
        customer_repo.get_user_email.return_value = "asha@example.com"
        service = SubscriptionService(customer_repo=customer_repo, settings_repo=MagicMock(), notifications=MagicMock())

        service.set_subscription("user-1", None, True)

        customer_repo.upsert_subscription.assert_called_once_with("user-1", "asha@example.com", None, True)

    def test_subscribe_without_email(self):
        customer_repo = MagicMock()
        customer_repo.get_user_email.return_value = None
        service = SubscriptionService(customer_repo=customer_repo, settings_repo=MagicMock(), notifications=MagicMock())

        with pytest.raises(ValidationError):
            service.set_subscription("user-1", None, True)

    def test_weekly_reminders_count_failures(self):
        customer_repo = MagicMock()
        customer_repo.find_active_subscriptions.return_value = [
            WeeklySubscription(id="s1", email="a@example.com"),
            WeeklySubscription(id="s2", email="b@example.com"),
        ]
        settings_repo = MagicMock()
        settings_repo.get.return_value = SiteSettings()
        notifications = MagicMock()
        notifications.send_weekly_reminder = AsyncMock(side_effect=[True, False])
        service = SubscriptionService(
            customer_repo=customer_repo, settings_repo=settings_repo, notifications=notifications
        )

        result = asyncio.run(service.send_weekly_reminders())

        assert result == {"total": 2, "sent": 1, "failed": 1}


class TestNotificationEmails:

    def _service(self, send_result="msg-1"):
        connector = MagicMock()
        connector.send_email = AsyncMock(return_value=send_result)
        return NotificationService(email=connector), connector

    def test_status_email_escapes_customer_text(self, make_order):
        service, connector = self._service()
        order = make_order("out_for_delivery")
        order.delivery_name = "<script>alert(1)</script>"

        sent = asyncio.run(service.send_status_update(order, "asha@example.com"))

        assert sent is True
        to, subject, html = connector.send_email.call_args[0]
        assert subject == "Out for Delivery! - Order #CF-20260217-0001"
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_no_recipient_skips_send(self, make_order):
        service, connector = self._service()

        sent = asyncio.run(service.send_status_update(make_order("delivered"), None))

        assert sent is False
        connector.send_email.assert_not_called()

    def test_send_failure_is_reported_not_raised(self, make_order):
        service, connector = self._service()
        connector.send_email.side_effect = Exception("resend unavailable")

        sent = asyncio.run(service.send_order_confirmation(make_order(), "asha@example.com", SiteSettings()))

        assert sent is False

    def test_confirmation_lists_items_and_order_days(self, make_order):
        service, _ = self._service()

        html = service.render_order_confirmation(make_order(), SiteSettings())

        assert "Alphonso Mango" in html
        assert "₹450.00" in html
        assert "Tuesday &amp; Friday" in html
