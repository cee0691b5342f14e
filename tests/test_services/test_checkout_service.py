"""
Unit tests for CartService pricing and CheckoutService

Repositories, delivery and Razorpay are mocked; cart pricing runs for real
against the mango fixture (500/dozen, 10% off, variants 260 and 950).
"""
import asyncio
import hashlib
import hmac
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from produce_store.connectors.razorpay_connector import RazorpayConnector
from produce_store.core.exceptions import (
    DeliveryUnavailableError, InvalidTransitionError, NotFoundError, PaymentGatewayError,
    PaymentVerificationError, ValidationError
)
from produce_store.domain.address import Address
from produce_store.domain.cart import CartLineRequest
from produce_store.domain.delivery import DeliveryQuote
from produce_store.domain.order import CheckoutRequest, PaymentVerifyRequest
from produce_store.domain.settings import SiteSettings
from produce_store.services.cart_service import CartService, price_line
from produce_store.services.checkout_service import CheckoutService


@pytest.fixture
def product_repo(mango):
    repo = MagicMock()
    repo.find_by_ids.return_value = {"prod-1": mango}
    repo.find_by_id.return_value = mango
    return repo


@pytest.fixture
def cart_service(product_repo):
    return CartService(product_repo=product_repo, analytics_repo=MagicMock())


class TestPriceLine:

    def test_base_price_with_discount(self, mango):
        item = price_line(mango, None, 2)

        assert item.price == Decimal("450")
        assert item.original_price == Decimal("500")
        assert item.line_total == Decimal("900")

    def test_variant_price_gets_product_discount(self, mango):
        item = price_line(mango, "var-1", 1)

        assert item.price == Decimal("234")
        assert item.display_name == "Alphonso Mango (Half dozen)"

    def test_unavailable_variant(self, mango):
        assert price_line(mango, "var-2", 1) is None

    def test_unknown_variant(self, mango):
        assert price_line(mango, "var-9", 1) is None

    def test_out_of_stock_product(self, mango):
        mango.stock_quantity = 0

        assert price_line(mango, None, 1) is None


class TestCartQuote:

    def test_merges_duplicate_lines_and_drops_missing(self, cart_service):
        # Act
        quote = cart_service.quote([
            CartLineRequest(product_id="prod-1", quantity=1),
            CartLineRequest(product_id="prod-1", quantity=2),
            CartLineRequest(product_id="gone", quantity=1),
        ])

        # Assert
        assert len(quote.cart.items) == 1
        assert quote.cart.items[0].quantity == 3
        assert quote.cart.total == Decimal("1350")
        assert [u.reason for u in quote.unavailable_items] == ["not_found"]

    def test_add_item_records_activity(self, product_repo):
        analytics_repo = MagicMock()
        service = CartService(product_repo=product_repo, analytics_repo=analytics_repo)

        item = service.add_item(CartLineRequest(product_id="prod-1", quantity=1), user_id="user-1")

        assert item.price == Decimal("450")
        assert analytics_repo.insert_activity.call_args[0][0] == "add_to_cart"

    def test_add_missing_product(self, product_repo):
        product_repo.find_by_id.return_value = None
        service = CartService(product_repo=product_repo, analytics_repo=MagicMock())

        with pytest.raises(NotFoundError):
            service.add_item(CartLineRequest(product_id="gone", quantity=1))


@pytest.fixture
def deps(cart_service, make_order):
    address_repo = MagicMock()
    address_repo.find_by_id.return_value = Address(
        id="addr-1", user_id="user-1", full_name="Asha", phone="9876543210",
        address="12 Civil Lines", city="Nagpur", pincode="440001", is_default=True
    )
    address_repo.count_by_user.return_value = 0

    settings_repo = MagicMock()
    settings_repo.get.return_value = SiteSettings()

    delivery = MagicMock()
    delivery.quote = AsyncMock(return_value=DeliveryQuote(
        pincode="440001", distance_km=5.0, duration_minutes=12, delivery_charge=Decimal("50")
    ))

    order_repo = MagicMock()
    order_repo.create.return_value = make_order()

    razorpay = MagicMock()
    razorpay.create_order = AsyncMock(return_value={
        "order_id": "order_rzp_1", "amount": 45000, "currency": "INR", "key_id": "rzp_test"
    })

    notifications = MagicMock()
    notifications.send_order_confirmation = AsyncMock(return_value=True)

    return {
        "order_repo": order_repo,
        "address_repo": address_repo,
        "settings_repo": settings_repo,
        "analytics_repo": MagicMock(),
        "customer_repo": MagicMock(),
        "cart_service": cart_service,
        "delivery": delivery,
        "razorpay": razorpay,
        "notifications": notifications,
    }


class TestPlaceOrder:

    def test_cod_order_from_saved_address(self, deps):
        # Arrange
        service = CheckoutService(**deps)
        request = CheckoutRequest(
            items=[CartLineRequest(product_id="prod-1", quantity=1)],
            address_id="addr-1"
        )

        # Act: 2026-02-18 is a Wednesday, next order day is Friday
        result = asyncio.run(service.place_order(
            "user-1", request, email="asha@example.com", today=date(2026, 2, 18)
        ))

        # Assert
        order_data, items = deps["order_repo"].create.call_args[0]
        assert order_data["subtotal"] == Decimal("450")
        assert order_data["delivery_charge"] == Decimal("50")
        assert order_data["total"] == Decimal("500")
        assert order_data["order_date"] == date(2026, 2, 20)
        assert order_data["delivery_address"] == "12 Civil Lines, 440001"
        assert items[0].product_name == "Alphonso Mango"

        assert result["payment"] is None
        deps["notifications"].send_order_confirmation.assert_awaited_once()
        deps["address_repo"].create.assert_not_called()

    def test_manual_address_is_saved_as_first_default(self, deps):
        service = CheckoutService(**deps)
        request = CheckoutRequest(
            items=[CartLineRequest(product_id="prod-1", quantity=1)],
            full_name="Asha", phone="9876543210", address="12 Civil Lines", pincode="440 001"
        )

        asyncio.run(service.place_order("user-1", request, today=date(2026, 2, 17)))

        saved = deps["address_repo"].create.call_args[0][1]
        assert saved.pincode == "440001"
        assert saved.is_default is True

    def test_online_order_opens_razorpay_and_waits_for_payment(self, deps, make_order):
        deps["order_repo"].create.return_value = make_order(payment_method="online")
        service = CheckoutService(**deps)
        request = CheckoutRequest(
            items=[CartLineRequest(product_id="prod-1", quantity=1)],
            address_id="addr-1", payment_method="online"
        )

        result = asyncio.run(service.place_order("user-1", request, today=date(2026, 2, 17)))

        assert result["payment"]["order_id"] == "order_rzp_1"
        deps["order_repo"].set_gateway_order.assert_called_once_with("order-1", "order_rzp_1")
        deps["notifications"].send_order_confirmation.assert_not_called()

    def test_unavailable_item_rejects_checkout(self, deps):
        service = CheckoutService(**deps)
        request = CheckoutRequest(
            items=[CartLineRequest(product_id="prod-1", variant_id="var-2", quantity=1)],
            address_id="addr-1"
        )

        with pytest.raises(ValidationError, match="no longer available: Alphonso Mango"):
            asyncio.run(service.place_order("user-1", request))

        deps["order_repo"].create.assert_not_called()

    def test_undeliverable_pincode(self, deps):
        deps["delivery"].quote.return_value = DeliveryQuote(
            pincode="440001", delivery_unavailable=True, error="Delivery not available beyond 50 km."
        )
        service = CheckoutService(**deps)
        request = CheckoutRequest(
            items=[CartLineRequest(product_id="prod-1", quantity=1)], address_id="addr-1"
        )

        with pytest.raises(DeliveryUnavailableError) as exc_info:
            asyncio.run(service.place_order("user-1", request))

        assert exc_info.value.status_code == 422

    def test_missing_manual_fields(self, deps):
        service = CheckoutService(**deps)
        request = CheckoutRequest(
            items=[CartLineRequest(product_id="prod-1", quantity=1)], full_name="Asha"
        )

        with pytest.raises(ValidationError, match="name, phone, address and pincode"):
            asyncio.run(service.place_order("user-1", request))


def _signed(key_secret, razorpay_order_id, payment_id):
    message = f"{razorpay_order_id}|{payment_id}".encode()
    return hmac.new(key_secret.encode(), message, hashlib.sha256).hexdigest()


class TestOpenPayment:

    def test_amount_mismatch_is_not_bound(self, deps, make_order):
        deps["order_repo"].find_by_id.return_value = make_order(payment_method="online")
        deps["razorpay"].create_order.return_value = {"order_id": "order_rzp_1", "amount": 100}
        service = CheckoutService(**deps)

        with pytest.raises(PaymentGatewayError):
            asyncio.run(service.create_payment_order("order-1", "user-1"))

        deps["order_repo"].set_gateway_order.assert_not_called()

    def test_paid_order_cannot_reopen_payment(self, deps, make_order):
        deps["order_repo"].find_by_id.return_value = make_order(payment_status="paid", payment_method="online")
        service = CheckoutService(**deps)

        with pytest.raises(ValidationError, match="already paid"):
            asyncio.run(service.create_payment_order("order-1", "user-1"))

        deps["razorpay"].create_order.assert_not_called()


class TestVerifyPayment:

    def _request(self, razorpay_order_id="order_rzp_1", payment_id="pay_1", signature="sig"):
        return PaymentVerifyRequest(
            razorpay_order_id=razorpay_order_id,
            razorpay_payment_id=payment_id,
            razorpay_signature=signature
        )

    def test_signature_mismatch_logs_error_and_leaves_order(self, deps, make_order):
        # Arrange
        deps["order_repo"].find_by_id.return_value = make_order(
            payment_method="online", razorpay_order_id="order_rzp_1"
        )
        deps["razorpay"].verify_signature.return_value = False
        service = CheckoutService(**deps)

        # Act / Assert
        with pytest.raises(PaymentVerificationError):
            asyncio.run(service.verify_payment("order-1", "user-1", self._request(signature="bad")))

        deps["order_repo"].mark_paid.assert_not_called()
        assert deps["analytics_repo"].insert_error.call_args[1]["error_type"] == "payment_verification"

    def test_valid_signature_marks_paid(self, deps, make_order):
        deps["order_repo"].find_by_id.return_value = make_order(
            payment_method="online", razorpay_order_id="order_rzp_1"
        )
        deps["order_repo"].mark_paid.return_value = make_order(
            status="confirmed", payment_status="paid", payment_method="online"
        )
        deps["razorpay"].verify_signature.return_value = True
        service = CheckoutService(**deps)

        order = asyncio.run(service.verify_payment("order-1", "user-1", self._request()))

        assert order.payment_status.value == "paid"
        deps["order_repo"].mark_paid.assert_called_once_with("order-1", "order_rzp_1", "pay_1")
        deps["notifications"].send_order_confirmation.assert_awaited_once()

    def test_payment_from_another_order_is_rejected(self, deps, make_order):
        # Arrange: a genuine signature, but for a cheaper order's Razorpay order
        deps["order_repo"].find_by_id.return_value = make_order(
            payment_method="online", razorpay_order_id="order_rzp_1"
        )
        deps["razorpay"] = RazorpayConnector(key_id="rzp_test", key_secret="secret")
        service = CheckoutService(**deps)
        request = self._request(
            razorpay_order_id="order_rzp_CHEAP",
            payment_id="pay_CHEAP",
            signature=_signed("secret", "order_rzp_CHEAP", "pay_CHEAP")
        )

        # Act / Assert
        with pytest.raises(PaymentVerificationError):
            asyncio.run(service.verify_payment("order-1", "user-1", request))

        deps["order_repo"].mark_paid.assert_not_called()
        deps["notifications"].send_order_confirmation.assert_not_called()
        context = deps["analytics_repo"].insert_error.call_args[1]["additional_context"]
        assert context["razorpay_order_id"] == "order_rzp_CHEAP"

    def test_order_without_opened_payment_is_rejected(self, deps, make_order):
        deps["order_repo"].find_by_id.return_value = make_order(payment_method="online")
        deps["razorpay"].verify_signature.return_value = True
        service = CheckoutService(**deps)

        with pytest.raises(PaymentVerificationError):
            asyncio.run(service.verify_payment("order-1", "user-1", self._request()))

        deps["order_repo"].mark_paid.assert_not_called()

    def test_repeat_verification_has_no_side_effects(self, deps, make_order):
        # Arrange
        paid = make_order(
            status="delivered", payment_status="paid", payment_method="online",
            razorpay_order_id="order_rzp_1", upi_reference="pay_1"
        )
        deps["order_repo"].find_by_id.return_value = paid
        deps["razorpay"].verify_signature.return_value = True
        service = CheckoutService(**deps)

        # Act
        order = asyncio.run(service.verify_payment("order-1", "user-1", self._request()))

        # Assert
        assert order is paid
        deps["order_repo"].mark_paid.assert_not_called()
        deps["notifications"].send_order_confirmation.assert_not_called()
        deps["analytics_repo"].insert_activity.assert_not_called()

    def test_paid_order_rejects_a_different_payment(self, deps, make_order):
        deps["order_repo"].find_by_id.return_value = make_order(
            status="confirmed", payment_status="paid", payment_method="online",
            razorpay_order_id="order_rzp_1", upi_reference="pay_1"
        )
        deps["razorpay"].verify_signature.return_value = True
        service = CheckoutService(**deps)

        with pytest.raises(InvalidTransitionError) as exc_info:
            asyncio.run(service.verify_payment("order-1", "user-1", self._request(payment_id="pay_2")))

        assert exc_info.value.status_code == 409
        deps["order_repo"].mark_paid.assert_not_called()

    def test_lost_race_does_not_email(self, deps, make_order):
        deps["order_repo"].find_by_id.return_value = make_order(
            payment_method="online", razorpay_order_id="order_rzp_1"
        )
        deps["order_repo"].mark_paid.return_value = None
        deps["razorpay"].verify_signature.return_value = True
        service = CheckoutService(**deps)

        with pytest.raises(InvalidTransitionError):
            asyncio.run(service.verify_payment("order-1", "user-1", self._request()))

        deps["notifications"].send_order_confirmation.assert_not_called()
