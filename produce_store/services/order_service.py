"""
Order Service
Order reads and the order / payment status state machines

Author: TM3
Date: 2026-02-13
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from produce_store.core.exceptions import NotFoundError, InvalidTransitionError
from produce_store.domain.order import (
    Order, OrderStatus, PaymentStatus, STATUS_LABELS, NOTIFY_STATUSES,
    can_transition, can_transition_payment, next_status
)
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.repositories.order_repository import OrderRepository
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class OrderService:
    """
    Service for order lifecycle

    Status writes are conditional on the status we read, so two admins
    acting at once can't skip a step: the loser gets a 409.
    """

    def __init__(
        self,
        order_repo: Optional[OrderRepository] = None,
        customer_repo: Optional[CustomerRepository] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.order_repo = order_repo or OrderRepository()
        self.customer_repo = customer_repo or CustomerRepository()
        self.notifications = notifications or NotificationService()

    # ========================================
    # Reads
    # ========================================

    def list_for_user(self, user_id: str, limit: int = 50, offset: int = 0) -> List[Order]:
        return self.order_repo.find_by_user(user_id, limit=limit, offset=offset)

    def get_for_user(self, order_id: str, user_id: str) -> Order:
        order = self.order_repo.find_by_id(order_id, user_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get_order(self, order_id: str) -> Order:
        order = self.order_repo.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def list_orders(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        return self.order_repo.find_all(
            status=status,
            payment_status=payment_status,
            from_date=from_date,
            to_date=to_date,
            search=search,
            limit=limit,
            offset=offset
        )

    def get_stats(self) -> dict:
        return self.order_repo.get_stats()

    # ========================================
    # Status machine
    # ========================================

    def _apply_status(self, order: Order, target: OrderStatus) -> Order:
        target = OrderStatus(target)
        if order.status == target:
            raise InvalidTransitionError(f"Order is already {STATUS_LABELS[target]}")
        if not can_transition(order.status, target):
            raise InvalidTransitionError(
                f"Cannot change order status from {order.status.value} to {target.value}"
            )

        updated = self.order_repo.update_status(order.id, order.status, target)
        if updated is None:
            raise InvalidTransitionError("Order was updated by someone else. Please refresh and try again.")

        logger.info(f"Order {order.order_number}: {order.status.value} -> {target.value}")
        return updated

    def update_status(self, order_id: str, target: OrderStatus) -> Order:
        """Admin status change"""
        return self._apply_status(self.get_order(order_id), target)

    def advance(self, order_id: str) -> Order:
        """Move to the next step on the fulfilment path"""
        order = self.get_order(order_id)
        target = next_status(order.status)
        if target is None:
            raise InvalidTransitionError(
                f"Order is already {STATUS_LABELS[order.status]}, nothing to advance"
            )
        return self._apply_status(order, target)

    def cancel_by_customer(self, order_id: str, user_id: str) -> Order:
        """Customers may cancel their own order while it is still pending"""
        order = self.get_for_user(order_id, user_id)
        if order.status != OrderStatus.PENDING:
            raise InvalidTransitionError("Only pending orders can be cancelled")
        return self._apply_status(order, OrderStatus.CANCELLED)

    def update_payment_status(
        self,
        order_id: str,
        target: PaymentStatus,
        upi_reference: Optional[str] = None
    ) -> Order:
        order = self.get_order(order_id)
        target = PaymentStatus(target)
        if order.payment_status == target:
            raise InvalidTransitionError(f"Payment is already {target.value}")
        if not can_transition_payment(order.payment_status, target):
            raise InvalidTransitionError(
                f"Cannot change payment status from {order.payment_status.value} to {target.value}"
            )

        updated = self.order_repo.update_payment_status(
            order.id, order.payment_status, target, upi_reference
        )
        if updated is None:
            raise InvalidTransitionError("Order was updated by someone else. Please refresh and try again.")

        logger.info(f"Order {order.order_number} payment: {order.payment_status.value} -> {target.value}")
        return updated

    # ========================================
    # Side effects
    # ========================================

    @staticmethod
    def should_notify(order: Order) -> bool:
        return order.status in NOTIFY_STATUSES

    async def notify_status_change(self, order: Order) -> bool:
        """Status email to the account owner; never raises"""
        if not self.should_notify(order):
            return False

        try:
            email = self.customer_repo.get_user_email(order.user_id) if order.user_id else None
        except Exception as e:
            logger.warning(f"Could not look up email for order {order.order_number}: {e}")
            return False

        return await self.notifications.send_status_update(order, email)
