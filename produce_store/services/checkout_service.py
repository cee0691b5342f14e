"""
Checkout Service
Turns a priced cart and delivery quote into an order, and takes payment

Author: TM3
Date: 2026-02-16
"""
import logging
from datetime import date
from typing import Dict, Optional

import httpx

from produce_store.connectors.razorpay_connector import RazorpayConnector, to_paise
from produce_store.core.config import settings
from produce_store.core.exceptions import (
    NotFoundError, ValidationError, DeliveryUnavailableError,
    PaymentVerificationError, PaymentGatewayError, InvalidTransitionError
)
from produce_store.domain.address import AddressCreate, clean_pincode, is_valid_pincode
from produce_store.domain.order import (
    Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus,
    CheckoutRequest, PaymentVerifyRequest
)
from produce_store.repositories.address_repository import AddressRepository
from produce_store.repositories.analytics_repository import AnalyticsRepository
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.repositories.order_repository import OrderRepository
from produce_store.repositories.settings_repository import SettingsRepository
from produce_store.services.cart_service import CartService
from produce_store.services.delivery_service import DeliveryService, delivery_service
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Service for placing orders

    Handles:
    - Address resolution (saved or entered manually)
    - Cart re-pricing and delivery quote
    - Order + items creation
    - Razorpay order creation and signature verification
    - Confirmation email and order_placed activity
    """

    def __init__(
        self,
        order_repo: Optional[OrderRepository] = None,
        address_repo: Optional[AddressRepository] = None,
        settings_repo: Optional[SettingsRepository] = None,
        analytics_repo: Optional[AnalyticsRepository] = None,
        customer_repo: Optional[CustomerRepository] = None,
        cart_service: Optional[CartService] = None,
        delivery: Optional[DeliveryService] = None,
        razorpay: Optional[RazorpayConnector] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.order_repo = order_repo or OrderRepository()
        self.address_repo = address_repo or AddressRepository()
        self.settings_repo = settings_repo or SettingsRepository()
        self.analytics_repo = analytics_repo or AnalyticsRepository()
        self.customer_repo = customer_repo or CustomerRepository()
        self.cart_service = cart_service or CartService()
        self.delivery = delivery or delivery_service
        self.razorpay = razorpay or RazorpayConnector()
        self.notifications = notifications or NotificationService()

    # ========================================
    # Helpers
    # ========================================

    def _resolve_address(self, user_id: str, request: CheckoutRequest) -> Dict:
        """Delivery contact from a saved address or the manual fields"""
        if request.address_id:
            saved = self.address_repo.find_by_id(request.address_id, user_id)
            if saved is None:
                raise NotFoundError("Address not found")
            return {
                "full_name": saved.full_name,
                "phone": saved.phone,
                "address": saved.address,
                "pincode": saved.pincode,
                "manual": False,
            }

        if not all([request.full_name, request.phone, request.address, request.pincode]):
            raise ValidationError("Please provide name, phone, address and pincode")

        pincode = clean_pincode(request.pincode)
        if not is_valid_pincode(pincode):
            raise ValidationError("Invalid pincode format")

        return {
            "full_name": request.full_name.strip(),
            "phone": request.phone.strip(),
            "address": request.address.strip(),
            "pincode": pincode,
            "manual": True,
        }

    def _save_address(self, user_id: str, contact: Dict):
        """Keep a manually entered address; the first one becomes default"""
        try:
            is_first = self.address_repo.count_by_user(user_id) == 0
            self.address_repo.create(user_id, AddressCreate(
                label="Home",
                full_name=contact["full_name"],
                phone=contact["phone"],
                address=contact["address"],
                city=settings.STORE_CITY,
                pincode=contact["pincode"],
                is_default=is_first
            ))
        except Exception as e:
            logger.warning(f"Could not save address for user {user_id}: {e}")

    def _log_order_placed(self, order: Order):
        try:
            self.analytics_repo.insert_activity(
                "order_placed",
                user_id=order.user_id,
                action_details={
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "total": float(order.total),
                    "payment_method": order.payment_method.value,
                }
            )
        except Exception as e:
            logger.warning(f"Could not record order_placed for {order.order_number}: {e}")

    def _recipient(self, user_id: str, email: Optional[str]) -> Optional[str]:
        if email:
            return email
        try:
            return self.customer_repo.get_user_email(user_id)
        except Exception as e:
            logger.warning(f"Could not look up email for user {user_id}: {e}")
            return None

    async def _send_confirmation(self, order: Order, email: Optional[str]):
        try:
            site = self.settings_repo.get()
        except Exception as e:
            logger.warning(f"Could not load site settings for confirmation email: {e}")
            site = None
        await self.notifications.send_order_confirmation(
            order, self._recipient(order.user_id, email), site
        )

    async def _open_payment(self, order: Order) -> Dict:
        """
        Create the Razorpay order for this order's total and bind it to the
        order row, so only a payment against it can mark the order paid.
        """
        try:
            payment = await self.razorpay.create_order(
                order.total, order.order_number, {"order_id": order.id}
            )
        except httpx.HTTPError as e:
            logger.error(f"Razorpay order creation failed for {order.order_number}: {e}")
            raise PaymentGatewayError("Could not start payment. Please try again.")

        if payment["amount"] != to_paise(order.total):
            logger.error(
                f"Razorpay order {payment['order_id']} amount {payment['amount']} "
                f"does not match {order.order_number} total {order.total}"
            )
            raise PaymentGatewayError("Could not start payment. Please try again.")

        if not self.order_repo.set_gateway_order(order.id, payment["order_id"]):
            raise InvalidTransitionError("Order is already paid or cancelled")

        return payment

    def _reject_payment(self, order: Order, user_id: str, request: PaymentVerifyRequest, reason: str):
        logger.warning(f"Payment verification failed for order {order.order_number}: {reason}")
        try:
            self.analytics_repo.insert_error(
                f"Payment verification failed: {reason}",
                error_type="payment_verification",
                user_id=user_id,
                additional_context={
                    "reason": reason,
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "expected_razorpay_order_id": order.razorpay_order_id,
                    "razorpay_order_id": request.razorpay_order_id,
                    "razorpay_payment_id": request.razorpay_payment_id,
                }
            )
        except Exception as e:
            logger.warning(f"Could not log payment verification error: {e}")
        raise PaymentVerificationError("Payment verification failed")

    # ========================================
    # Checkout
    # ========================================

    async def place_order(
        self,
        user_id: str,
        request: CheckoutRequest,
        email: Optional[str] = None,
        today: Optional[date] = None
    ) -> Dict:
        """
        Create a pending order from the submitted cart

        Returns:
            Dict with order, delivery quote and, for online payment, the
            Razorpay order the client opens checkout with
        """
        contact = self._resolve_address(user_id, request)

        quote = self.cart_service.quote(request.items)
        if quote.unavailable_items:
            names = ", ".join(u.name or u.product_id for u in quote.unavailable_items)
            raise ValidationError(f"Some items are no longer available: {names}")
        cart = quote.cart
        if cart.is_empty:
            raise ValidationError("Cart is empty")

        delivery = await self.delivery.quote(contact["pincode"], subtotal=cart.total)
        if delivery.delivery_unavailable:
            raise DeliveryUnavailableError(delivery.error or "Delivery unavailable")

        site = self.settings_repo.get()
        order_date = site.order_date_for(today or date.today())

        items = [
            OrderItem(
                product_id=item.product_id,
                product_name=item.display_name,
                quantity=item.quantity,
                unit_price=item.price,
                total_price=item.line_total
            )
            for item in cart.items
        ]

        order = self.order_repo.create({
            "user_id": user_id,
            "delivery_name": contact["full_name"],
            "delivery_phone": contact["phone"],
            "delivery_address": f"{contact['address']}, {contact['pincode']}",
            "delivery_slot": site.delivery_time_slot,
            "order_date": order_date,
            "notes": request.notes,
            "subtotal": cart.total,
            "delivery_charge": delivery.delivery_charge,
            "total": cart.total + delivery.delivery_charge,
            "payment_method": request.payment_method.value,
            "payment_status": PaymentStatus.PENDING.value,
            "status": OrderStatus.PENDING.value,
        }, items)
        logger.info(f"Order {order.order_number} placed by {user_id} ({order.payment_method.value}, {order.total})")

        if contact["manual"] and request.save_address:
            self._save_address(user_id, contact)

        payment = None
        if order.payment_method == PaymentMethod.ONLINE:
            payment = await self._open_payment(order)
        else:
            await self._send_confirmation(order, email)
            self._log_order_placed(order)

        return {"order": order, "delivery": delivery, "payment": payment}

    async def create_payment_order(self, order_id: str, user_id: str) -> Dict:
        """(Re)open online payment for one of the user's unpaid orders"""
        order = self.order_repo.find_by_id(order_id, user_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.payment_status == PaymentStatus.PAID:
            raise ValidationError("Order is already paid")
        if order.status == OrderStatus.CANCELLED:
            raise InvalidTransitionError("Cannot pay for a cancelled order")

        return await self._open_payment(order)

    async def verify_payment(
        self,
        order_id: str,
        user_id: str,
        request: PaymentVerifyRequest,
        email: Optional[str] = None
    ) -> Order:
        """
        Check the Razorpay signature and mark the order paid + confirmed

        The signed Razorpay order must be the one opened for this order.
        Repeating a verification that already succeeded returns the order
        without side effects.

        Raises:
            PaymentVerificationError: bad signature or another order's payment (order unchanged)
            InvalidTransitionError: order cancelled, or already paid by a different payment
        """
        order = self.order_repo.find_by_id(order_id, user_id)
        if order is None:
            raise NotFoundError("Order not found")

        if order.payment_status == PaymentStatus.PAID:
            if order.upi_reference == request.razorpay_payment_id:
                return order
            raise InvalidTransitionError("Order is already paid")

        if not self.razorpay.verify_signature(
            request.razorpay_order_id, request.razorpay_payment_id, request.razorpay_signature
        ):
            self._reject_payment(order, user_id, request, "signature mismatch")

        if not order.razorpay_order_id or request.razorpay_order_id != order.razorpay_order_id:
            self._reject_payment(order, user_id, request, "payment belongs to a different Razorpay order")

        updated = self.order_repo.mark_paid(
            order.id, request.razorpay_order_id, request.razorpay_payment_id
        )
        if updated is None:
            raise InvalidTransitionError("Order is cancelled or already paid")

        logger.info(f"Payment {request.razorpay_payment_id} verified for order {updated.order_number}")
        await self._send_confirmation(updated, email)
        self._log_order_placed(updated)
        return updated
