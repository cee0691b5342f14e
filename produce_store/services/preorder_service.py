"""
Pre-order Service
Reservations for banner products, their payment and availability notices

Author: TM3
Date: 2026-02-18
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import httpx

from produce_store.connectors.razorpay_connector import RazorpayConnector, to_paise
from produce_store.core.exceptions import (
    NotFoundError, ValidationError, InvalidTransitionError, DeliveryUnavailableError,
    PaymentVerificationError, PaymentGatewayError
)
from produce_store.domain.order import PaymentVerifyRequest
from produce_store.domain.preorder import (
    PreOrder, PreOrderCreate, PreOrderNotification, PreOrderPaymentStatus, PreOrderStatus,
    can_transition_preorder, preorder_available_message
)
from produce_store.repositories.banner_repository import BannerRepository
from produce_store.repositories.preorder_repository import PreOrderRepository
from produce_store.services.delivery_service import DeliveryService, delivery_service
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class PreOrderService:
    """
    Service for pre-orders

    Handles:
    - Reservation from a live banner (with optional upfront payment)
    - Queue position
    - Status transitions (admin) and customer cancellation
    - Razorpay payment for banners that require it
    - "Now available" notifications
    """

    def __init__(
        self,
        preorder_repo: Optional[PreOrderRepository] = None,
        banner_repo: Optional[BannerRepository] = None,
        delivery: Optional[DeliveryService] = None,
        razorpay: Optional[RazorpayConnector] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.preorder_repo = preorder_repo or PreOrderRepository()
        self.banner_repo = banner_repo or BannerRepository()
        self.delivery = delivery or delivery_service
        self.razorpay = razorpay or RazorpayConnector()
        self.notifications = notifications or NotificationService()

    # ========================================
    # Create / read
    # ========================================

    async def create(
        self,
        user_id: str,
        request: PreOrderCreate,
        today: Optional[date] = None
    ) -> Tuple[PreOrder, int]:
        """
        Reserve a banner product

        Returns:
            (pre-order, queue position)
        """
        banner = self.banner_repo.find_by_id(request.banner_id)
        if banner is None:
            raise NotFoundError("Banner not found")
        if not banner.is_live(today or date.today()):
            raise ValidationError("Pre-orders for this product are closed")

        distance_km = None
        delivery_charge = None
        delivery_pincode = None
        if request.delivery_pincode:
            quote = await self.delivery.quote(request.delivery_pincode)
            if quote.delivery_unavailable:
                raise DeliveryUnavailableError(quote.error or "Delivery unavailable")
            distance_km = Decimal(str(quote.distance_km))
            delivery_charge = quote.delivery_charge
            delivery_pincode = quote.pincode

        payment_amount = None
        payment_status = PreOrderPaymentStatus.NOT_REQUIRED
        if banner.payment_required:
            if banner.price_per_unit is None:
                raise ValidationError("This pre-order has no price configured")
            payment_amount = banner.price_per_unit * request.quantity + (delivery_charge or Decimal("0"))
            payment_status = PreOrderPaymentStatus.PENDING

        pre_order = self.preorder_repo.create({
            "user_id": user_id,
            "banner_id": banner.id,
            "product_name": banner.product_name,
            "quantity": request.quantity,
            "customer_name": request.customer_name,
            "customer_phone": request.customer_phone,
            "customer_email": request.customer_email,
            "delivery_address": request.delivery_address,
            "delivery_pincode": delivery_pincode,
            "delivery_distance_km": distance_km,
            "delivery_charge": delivery_charge,
            "payment_amount": payment_amount,
            "payment_status": payment_status.value,
            "status": PreOrderStatus.PENDING.value,
            "notes": request.notes,
        })

        position = self.preorder_repo.get_queue_position(pre_order)
        logger.info(f"Pre-order {pre_order.id} for {pre_order.product_name} x {pre_order.quantity} (queue #{position})")

        await self.notifications.send_preorder_confirmation(pre_order, position)
        return pre_order, position

    def list_for_user(self, user_id: str) -> List[PreOrder]:
        return self.preorder_repo.find_by_user(user_id)

    def get_for_user(self, pre_order_id: str, user_id: str) -> PreOrder:
        pre_order = self.preorder_repo.find_by_id(pre_order_id, user_id)
        if pre_order is None:
            raise NotFoundError("Pre-order not found")
        return pre_order

    def get_pre_order(self, pre_order_id: str) -> PreOrder:
        pre_order = self.preorder_repo.find_by_id(pre_order_id)
        if pre_order is None:
            raise NotFoundError("Pre-order not found")
        return pre_order

    def list_all(
        self,
        status: Optional[str] = None,
        product_name: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[PreOrder], int]:
        return self.preorder_repo.find_all(status=status, product_name=product_name, limit=limit, offset=offset)

    def queue_position(self, pre_order: PreOrder) -> Optional[int]:
        if pre_order.status != PreOrderStatus.PENDING:
            return None
        return self.preorder_repo.get_queue_position(pre_order)

    # ========================================
    # Status
    # ========================================

    def _apply_status(self, pre_order: PreOrder, target: PreOrderStatus) -> PreOrder:
        target = PreOrderStatus(target)
        if pre_order.status == target:
            raise InvalidTransitionError(f"Pre-order is already {target.value}")
        if not can_transition_preorder(pre_order.status, target):
            raise InvalidTransitionError(
                f"Cannot change pre-order status from {pre_order.status.value} to {target.value}"
            )

        updated = self.preorder_repo.update_status(pre_order.id, pre_order.status, target)
        if updated is None:
            raise InvalidTransitionError("Pre-order was updated by someone else. Please refresh and try again.")

        logger.info(f"Pre-order {pre_order.id}: {pre_order.status.value} -> {target.value}")
        return updated

    def update_status(self, pre_order_id: str, target: PreOrderStatus) -> PreOrder:
        return self._apply_status(self.get_pre_order(pre_order_id), target)

    def cancel_by_customer(self, pre_order_id: str, user_id: str) -> PreOrder:
        pre_order = self.get_for_user(pre_order_id, user_id)
        if pre_order.status != PreOrderStatus.PENDING:
            raise InvalidTransitionError("Only pending pre-orders can be cancelled")
        return self._apply_status(pre_order, PreOrderStatus.CANCELLED)

    # ========================================
    # Payment
    # ========================================

    async def create_payment_order(self, pre_order_id: str, user_id: str) -> Dict:
        pre_order = self.get_for_user(pre_order_id, user_id)
        if pre_order.status == PreOrderStatus.CANCELLED:
            raise InvalidTransitionError("Cannot pay for a cancelled pre-order")
        if pre_order.payment_status != PreOrderPaymentStatus.PENDING or not pre_order.payment_amount:
            raise ValidationError("No payment is due for this pre-order")

        try:
            payment = await self.razorpay.create_order(
                pre_order.payment_amount,
                f"preorder_{pre_order.id}"[:40],
                {"pre_order_id": pre_order.id, "product_name": pre_order.product_name}
            )
        except httpx.HTTPError as e:
            logger.error(f"Razorpay order creation failed for pre-order {pre_order.id}: {e}")
            raise PaymentGatewayError("Could not start payment. Please try again.")

        if payment["amount"] != to_paise(pre_order.payment_amount):
            logger.error(f"Razorpay order {payment['order_id']} amount mismatch for pre-order {pre_order.id}")
            raise PaymentGatewayError("Could not start payment. Please try again.")

        if not self.preorder_repo.set_gateway_order(pre_order.id, payment["order_id"]):
            raise InvalidTransitionError("No payment is due for this pre-order")

        return payment

    def verify_payment(self, pre_order_id: str, user_id: str, request: PaymentVerifyRequest) -> PreOrder:
        """
        Mark a pre-order paid after checking the signature and that the
        signed Razorpay order is the one opened for it
        """
        pre_order = self.get_for_user(pre_order_id, user_id)

        if pre_order.payment_status == PreOrderPaymentStatus.PAID:
            if pre_order.razorpay_payment_id == request.razorpay_payment_id:
                return pre_order
            raise InvalidTransitionError("Pre-order is already paid")
        if pre_order.payment_status != PreOrderPaymentStatus.PENDING:
            raise ValidationError("No payment is due for this pre-order")

        if not self.razorpay.verify_signature(
            request.razorpay_order_id, request.razorpay_payment_id, request.razorpay_signature
        ):
            logger.warning(f"Payment signature mismatch for pre-order {pre_order.id}")
            raise PaymentVerificationError("Payment verification failed")

        if not pre_order.razorpay_order_id or request.razorpay_order_id != pre_order.razorpay_order_id:
            logger.warning(
                f"Pre-order {pre_order.id} verified with Razorpay order {request.razorpay_order_id}, "
                f"expected {pre_order.razorpay_order_id}"
            )
            raise PaymentVerificationError("Payment verification failed")

        updated = self.preorder_repo.mark_paid(
            pre_order.id, request.razorpay_order_id, request.razorpay_payment_id
        )
        if updated is None:
            raise InvalidTransitionError("Pre-order is cancelled or already paid")

        logger.info(f"Payment {request.razorpay_payment_id} verified for pre-order {pre_order.id}")
        return updated

    # ========================================
    # Availability notices
    # ========================================

    async def notify_available(self, product_name: str, banner_id: Optional[str] = None) -> Dict[str, int]:
        """
        Tell every pending reservation of a product that it is in stock

        Each pre-order gets an in-app notification, an email when it has
        an address, and moves to confirmed.
        """
        pending = self.preorder_repo.find_pending_for_product(product_name, banner_id)

        notified = 0
        emails_sent = 0
        for pre_order in pending:
            message = preorder_available_message(pre_order.product_name, pre_order.quantity)
            if not self.preorder_repo.confirm_with_notification(pre_order, message):
                continue
            notified += 1

            if pre_order.customer_email:
                if await self.notifications.send_preorder_available(pre_order, message):
                    emails_sent += 1

        logger.info(f"Notified {notified} pre-order(s) for {product_name}, {emails_sent} email(s) sent")
        return {
            "notified": notified,
            "emails_sent": emails_sent,
            "notifications_created": notified,
        }

    def list_notifications(self, user_id: str, unread_only: bool = False) -> List[PreOrderNotification]:
        return self.preorder_repo.find_notifications(user_id, unread_only=unread_only)

    def mark_notifications_read(self, user_id: str, notification_id: Optional[str] = None) -> int:
        return self.preorder_repo.mark_notifications_read(user_id, notification_id)
