"""
Razorpay Connector
Creates gateway orders and verifies checkout signatures

Author: TM3
Date: 2026-02-16
"""
import hmac
import hashlib
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

import httpx

from produce_store.core.config import settings
from produce_store.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def to_paise(amount) -> int:
    """Rupees to integer paise, rounded half up"""
    paise = Decimal(str(amount)) * Decimal("100")
    return int(paise.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RazorpayConnector:
    """
    Connector for the Razorpay Orders API

    Handles:
    - Order creation (amount in paise, INR)
    - Payment signature verification (HMAC-SHA256)
    """

    def __init__(
        self,
        key_id: str = None,
        key_secret: str = None,
        api_url: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.api_url = (api_url or settings.RAZORPAY_API_URL).rstrip("/")
        self.transport = transport

    def _require_credentials(self):
        if not self.key_id or not self.key_secret:
            raise ConfigurationError("Razorpay credentials not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET")

    async def create_order(self, amount, receipt: str, notes: Dict[str, str] = None) -> Dict:
        """
        Create a Razorpay order

        Args:
            amount: Amount in rupees
            receipt: Our reference (order number or pre-order id)
            notes: Free-form key/value notes shown in the dashboard

        Returns:
            Dict with order_id, amount (paise), currency and key_id for the
            client-side checkout
        """
        self._require_credentials()

        payload = {
            "amount": to_paise(amount),
            "currency": "INR",
            "receipt": receipt,
            "notes": notes or {},
        }

        async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as client:
            response = await client.post(
                f"{self.api_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret)
            )
            response.raise_for_status()
            data = response.json()

        logger.info(f"Created Razorpay order {data['id']} for receipt {receipt}")
        return {
            "order_id": data["id"],
            "amount": data["amount"],
            "currency": data["currency"],
            "key_id": self.key_id,
        }

    def verify_signature(self, razorpay_order_id: str, razorpay_payment_id: str, signature: str) -> bool:
        """Check the checkout signature: HMAC-SHA256("{order_id}|{payment_id}")"""
        self._require_credentials()

        message = f"{razorpay_order_id}|{razorpay_payment_id}".encode()
        expected = hmac.new(self.key_secret.encode(), message, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature or "")
