"""
Notification Service
Builds and sends the store's transactional emails

Every send is guarded: a failure is logged and reported as False, it
never propagates into the order or pre-order write that triggered it.

Author: TM3
Date: 2026-02-16
"""
import logging
from datetime import datetime
from html import escape
from typing import Dict, List, Optional

from produce_store.connectors.resend_connector import ResendConnector
from produce_store.core.config import settings
from produce_store.domain.order import Order, OrderStatus
from produce_store.domain.preorder import PreOrder
from produce_store.domain.settings import SiteSettings

logger = logging.getLogger(__name__)


# Status email copy: (subject title, body message)
STATUS_EMAILS: Dict[OrderStatus, tuple] = {
    OrderStatus.CONFIRMED: (
        "Order Confirmed!",
        "Great news! Your order has been confirmed and we're preparing it with care."
    ),
    OrderStatus.PREPARING: (
        "Order Being Prepared",
        "Your order is now being prepared. We're carefully packing fresh produce for you."
    ),
    OrderStatus.OUT_FOR_DELIVERY: (
        "Out for Delivery!",
        "Exciting! Your order is on its way. Our delivery partner will reach you soon."
    ),
    OrderStatus.DELIVERED: (
        "Order Delivered!",
        "Your order has been delivered successfully. Enjoy your fresh produce!"
    ),
    OrderStatus.CANCELLED: (
        "Order Cancelled",
        "Your order has been cancelled. If you have any questions, please contact us."
    ),
}


def _money(amount) -> str:
    return f"₹{float(amount or 0):,.2f}"


def _layout(title: str, body: str) -> str:
    """Wrap body HTML in the shared email shell; title must already be escaped"""
    year = datetime.now().year
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; background: #f6f8f5; padding: 24px;">
      <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px; overflow: hidden;">
        <div style="background: #2e7d32; color: #ffffff; padding: 20px;">
          <h1 style="margin: 0; font-size: 22px;">{title}</h1>
        </div>
        <div style="padding: 20px; color: #333333;">
          {body}
        </div>
        <div style="padding: 12px 20px; font-size: 12px; color: #888888;">
          &copy; {year} {escape(settings.STORE_NAME)}. All rights reserved.
        </div>
      </div>
    </body>
    </html>
    """


def _table(headers: List[str], rows: List[List[str]]) -> str:
    """HTML table; cell values are escaped here"""
    head = "".join(f"<th style='text-align:left;padding:6px;'>{escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td style='padding:6px;'>{escape(str(c))}</td>" for c in row) + "</tr>"
        for row in rows
    )
    return f"<table style='width:100%;border-collapse:collapse;'><tr>{head}</tr>{body}</table>"


class NotificationService:
    """
    Service for customer and admin emails

    Handles:
    - Order confirmation and status updates
    - Pre-order confirmation and availability
    - Ordering OTP codes
    - Weekly reminders
    - Sales reports and critical error alerts (admin)
    """

    def __init__(self, email: Optional[ResendConnector] = None):
        self.email = email or ResendConnector()

    async def _send(self, to: Optional[str], subject: str, html: str) -> bool:
        if not to:
            logger.warning(f"No recipient for email '{subject}', skipping")
            return False

        try:
            message_id = await self.email.send_email(to, subject, html)
            return message_id is not None
        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False

    # ========================================
    # Orders
    # ========================================

    def render_order_confirmation(self, order: Order, site: Optional[SiteSettings] = None) -> str:
        rows = [
            [item.product_name, item.quantity, _money(item.unit_price), _money(item.total_price)]
            for item in order.items
        ]
        schedule = ""
        if site is not None and site.order_days:
            schedule = f"<p>We deliver on {escape(site.order_days_display())}.</p>"

        body = f"""
          <p>Hi {escape(order.delivery_name)},</p>
          <p>Thank you for your order <strong>#{escape(order.order_number)}</strong>.</p>
          {_table(["Item", "Qty", "Price", "Total"], rows)}
          <p>Subtotal: {_money(order.subtotal)}<br>
             Delivery: {_money(order.delivery_charge)}<br>
             <strong>Total: {_money(order.total)}</strong></p>
          <p>Delivery on {escape(order.order_date.strftime('%A, %d %B %Y'))}
             ({escape(order.delivery_slot or '')})<br>
             {escape(order.delivery_address)}</p>
          <p>Payment: {escape(order.payment_method.value.upper())}</p>
          {schedule}
        """
        return _layout("Order Confirmed!", body)

    async def send_order_confirmation(
        self,
        order: Order,
        to: Optional[str],
        site: Optional[SiteSettings] = None
    ) -> bool:
        subject = f"Order Confirmed! #{order.order_number} - {settings.STORE_NAME}"
        return await self._send(to, subject, self.render_order_confirmation(order, site))

    def render_status_update(self, order: Order) -> Optional[str]:
        copy = STATUS_EMAILS.get(order.status)
        if copy is None:
            return None
        title, message = copy
        body = f"""
          <p>Hi {escape(order.delivery_name)},</p>
          <p>{escape(message)}</p>
          <p>Order <strong>#{escape(order.order_number)}</strong>, total {_money(order.total)}</p>
        """
        return _layout(escape(title), body)

    async def send_status_update(self, order: Order, to: Optional[str]) -> bool:
        html = self.render_status_update(order)
        if html is None:
            return False
        title = STATUS_EMAILS[order.status][0]
        return await self._send(to, f"{title} - Order #{order.order_number}", html)

    # ========================================
    # Pre-orders
    # ========================================

    async def send_preorder_confirmation(self, pre_order: PreOrder, queue_position: int) -> Dict[str, bool]:
        """Customer confirmation (when an email was given) plus an admin heads-up"""
        payment = ""
        if pre_order.payment_amount is not None:
            payment = f"<p>Amount payable: {_money(pre_order.payment_amount)}</p>"

        customer_body = f"""
          <p>Hi {escape(pre_order.customer_name)},</p>
          <p>Your pre-order for <strong>{escape(pre_order.product_name)}</strong>
             &times; {pre_order.quantity} is confirmed.</p>
          <p>Your position in the queue: <strong>#{queue_position}</strong></p>
          {payment}
          <p>We'll let you know as soon as it is available.</p>
        """
        admin_body = f"""
          <p>New pre-order received.</p>
          {_table(["Field", "Value"], [
              ["Product", pre_order.product_name],
              ["Quantity", pre_order.quantity],
              ["Customer", pre_order.customer_name],
              ["Phone", pre_order.customer_phone],
              ["Email", pre_order.customer_email or "-"],
              ["Address", pre_order.delivery_address or "-"],
              ["Queue position", queue_position],
          ])}
        """

        customer_sent = False
        if pre_order.customer_email:
            customer_sent = await self._send(
                pre_order.customer_email,
                f"Pre-Order Confirmed! {pre_order.product_name} - {settings.STORE_NAME}",
                _layout("Pre-Order Confirmed!", customer_body)
            )
        admin_sent = await self._send(
            settings.ADMIN_EMAIL,
            f"New Pre-Order: {pre_order.product_name} x {pre_order.quantity} - {pre_order.customer_name}",
            _layout("New Pre-Order", admin_body)
        )
        return {"customer": customer_sent, "admin": admin_sent}

    async def send_preorder_available(self, pre_order: PreOrder, message: str) -> bool:
        body = f"""
          <p>Hi {escape(pre_order.customer_name)},</p>
          <p>{escape(message)}</p>
        """
        return await self._send(
            pre_order.customer_email,
            f"{pre_order.product_name} is Now Available! - {settings.STORE_NAME}",
            _layout(f"{escape(pre_order.product_name)} is Now Available!", body)
        )

    # ========================================
    # Account / marketing
    # ========================================

    async def send_otp(self, to: str, code: str, expiry_minutes: int) -> bool:
        body = f"""
          <p>Your order verification code is:</p>
          <p style="font-size: 28px; letter-spacing: 6px;"><strong>{escape(code)}</strong></p>
          <p>This code expires in {expiry_minutes} minutes. Do not share it with anyone.</p>
        """
        return await self._send(
            to,
            f"Your Order Verification Code - {settings.STORE_NAME}",
            _layout("Verify Your Order", body)
        )

    async def send_weekly_reminder(self, to: str, site: SiteSettings) -> bool:
        body = f"""
          <p>Fresh produce is available this week.</p>
          <p>Order days: <strong>{escape(site.order_days_display())}</strong><br>
             Delivery slot: {escape(site.delivery_time_slot)}</p>
          <p>Place your order today!</p>
        """
        return await self._send(
            to,
            "Fresh Produce Available - Place Your Order Today!",
            _layout("Fresh Produce Available", body)
        )

    # ========================================
    # Admin
    # ========================================

    async def send_sales_report(self, report: dict, to: Optional[str] = None) -> bool:
        title = "Weekly" if report["report_type"] == "weekly" else "Monthly"
        top_rows = [
            [p["product_name"], p["quantity"], _money(p["revenue"])]
            for p in report["top_products"]
        ]
        status_rows = [[status, count] for status, count in report["orders_by_status"].items()]
        body = f"""
          <p>{escape(report['start_date'])} to {escape(report['end_date'])}</p>
          <p>Total orders: <strong>{report['total_orders']}</strong><br>
             Total revenue: <strong>{_money(report['total_revenue'])}</strong><br>
             Average order value: {_money(report['average_order_value'])}<br>
             New customers: {report['new_customers']}</p>
          <h3>Top Products</h3>
          {_table(["Product", "Quantity Sold", "Revenue"], top_rows)}
          <h3>Orders by Status</h3>
          {_table(["Status", "Orders"], status_rows)}
        """
        return await self._send(
            to or settings.ADMIN_EMAIL,
            f"{title} Sales Report - {report['start_date']} to {report['end_date']}",
            _layout(f"{title} Sales Report", body)
        )

    async def send_critical_alert(self, error: dict) -> bool:
        error_type = error.get("error_type") or "Runtime Error"
        page = error.get("page_path") or "Unknown Page"
        body = f"""
          <p><strong>{escape(error.get('error_message') or '')}</strong></p>
          {_table(["Field", "Value"], [
              ["Type", error_type],
              ["Page", page],
              ["User", error.get("user_id") or "anonymous"],
              ["Session", error.get("session_id") or "-"],
              ["User agent", error.get("user_agent") or "-"],
          ])}
          <pre style="white-space: pre-wrap; font-size: 12px;">{escape(error.get('error_stack') or '')}</pre>
        """
        return await self._send(
            settings.ADMIN_EMAIL,
            f"Critical Error: {error_type} on {page}",
            _layout("Critical Error", body)
        )
