"""
Subscription Service
Weekly order-day reminders for opted-in customers

Author: TM3
Date: 2026-02-24
"""
import logging
from typing import Dict, Optional

from produce_store.core.exceptions import ValidationError
from produce_store.domain.customer import WeeklySubscription
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.repositories.settings_repository import SettingsRepository
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Service for weekly reminder subscriptions"""

    def __init__(
        self,
        customer_repo: Optional[CustomerRepository] = None,
        settings_repo: Optional[SettingsRepository] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.customer_repo = customer_repo or CustomerRepository()
        self.settings_repo = settings_repo or SettingsRepository()
        self.notifications = notifications or NotificationService()

    def get_subscription(self, user_id: str) -> Optional[WeeklySubscription]:
        return self.customer_repo.find_subscription(user_id)

    def set_subscription(
        self,
        user_id: str,
        email: Optional[str],
        subscribe: bool,
        phone: Optional[str] = None
    ) -> WeeklySubscription:
        email = email or self.customer_repo.get_user_email(user_id)
        if not email:
            raise ValidationError("Your account has no email address")

        subscription = self.customer_repo.upsert_subscription(user_id, email, phone, subscribe)
        logger.info(f"User {user_id} {'subscribed to' if subscribe else 'unsubscribed from'} weekly reminders")
        return subscription

    async def send_weekly_reminders(self) -> Dict[str, int]:
        """Email every active subscriber; returns sent / failed counts"""
        site = self.settings_repo.get()
        subscribers = self.customer_repo.find_active_subscriptions()

        sent = 0
        failed = 0
        for subscription in subscribers:
            if await self.notifications.send_weekly_reminder(subscription.email, site):
                sent += 1
            else:
                failed += 1

        logger.info(f"Weekly reminders: {sent} sent, {failed} failed of {len(subscribers)}")
        return {"total": len(subscribers), "sent": sent, "failed": failed}
