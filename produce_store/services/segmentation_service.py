"""
Segmentation Service
Groups registered customers into VIP, dormant and new segments

Author: TM3
Date: 2026-02-20
"""
import math
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from produce_store.core.exceptions import NotFoundError
from produce_store.domain.customer import CustomerStats, OfflineCustomer, OfflineCustomerCreate
from produce_store.repositories.address_repository import AddressRepository
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)

VIP_MIN_SPEND = Decimal("2000")
VIP_TOP_SHARE = 0.2
DORMANT_DAYS = 30
NEW_CUSTOMER_DAYS = 7


def vip_threshold(customers: List[CustomerStats]) -> Decimal:
    """
    Spend needed to count as VIP

    The spend of the customer sitting at the top-20% cut (by position
    among all customers), never below 2000.
    """
    spenders = sorted(
        (c for c in customers if c.total_spent > 0),
        key=lambda c: c.total_spent,
        reverse=True
    )
    top_count = math.ceil(len(customers) * VIP_TOP_SHARE)
    top = spenders[:top_count]
    if not top:
        return VIP_MIN_SPEND
    return max(VIP_MIN_SPEND, top[-1].total_spent)


def segment_customers(customers: List[CustomerStats], now: Optional[datetime] = None) -> Dict:
    """Split customer stats into vip / dormant / new lists"""
    now = now or datetime.now(timezone.utc)
    threshold = vip_threshold(customers)

    vip = sorted(
        (c for c in customers if c.total_spent > 0 and c.total_spent >= threshold),
        key=lambda c: c.total_spent,
        reverse=True
    )

    dormant = sorted(
        (
            c for c in customers
            if c.order_count > 0
            and c.days_since_last_order is not None
            and c.days_since_last_order >= DORMANT_DAYS
        ),
        key=lambda c: c.days_since_last_order,
        reverse=True
    )

    new_since = now - timedelta(days=NEW_CUSTOMER_DAYS)
    new = []
    for c in customers:
        if c.created_at is None:
            continue
        created = c.created_at if c.created_at.tzinfo else c.created_at.replace(tzinfo=timezone.utc)
        if created >= new_since:
            new.append(c)
    new.sort(key=lambda c: c.created_at, reverse=True)

    return {
        "vip_threshold": threshold,
        "vip": vip,
        "dormant": dormant,
        "new": new,
    }


class SegmentationService:
    """Service for customer segments, customer detail and offline customers"""

    def __init__(
        self,
        customer_repo: Optional[CustomerRepository] = None,
        address_repo: Optional[AddressRepository] = None,
        order_repo: Optional[OrderRepository] = None
    ):
        self.customer_repo = customer_repo or CustomerRepository()
        self.address_repo = address_repo or AddressRepository()
        self.order_repo = order_repo or OrderRepository()

    def get_segments(self, now: Optional[datetime] = None) -> Dict:
        customers = self.customer_repo.find_customer_stats()
        segments = segment_customers(customers, now)

        logger.info(
            f"Segmented {len(customers)} customers: {len(segments['vip'])} VIP, "
            f"{len(segments['dormant'])} dormant, {len(segments['new'])} new"
        )

        return {
            "total_customers": len(customers),
            "vip_threshold": float(segments['vip_threshold']),
            "vip": [c.to_dict() for c in segments['vip']],
            "dormant": [c.to_dict() for c in segments['dormant']],
            "new": [c.to_dict() for c in segments['new']],
            "counts": {
                "vip": len(segments['vip']),
                "dormant": len(segments['dormant']),
                "new": len(segments['new']),
            },
        }

    def list_customers(self) -> List[CustomerStats]:
        return self.customer_repo.find_customer_stats()

    def get_customer_detail(self, user_id: str) -> Dict:
        profile = self.customer_repo.find_profile(user_id)
        if profile is None:
            raise NotFoundError("Customer not found")

        return {
            "profile": profile.to_dict(),
            "email": self.customer_repo.get_user_email(user_id),
            "addresses": [a.to_dict() for a in self.address_repo.find_by_user(user_id)],
            "orders": [o.to_dict() for o in self.order_repo.find_by_user(user_id)],
        }

    # ========================================
    # Offline customers
    # ========================================

    def list_offline(self, search: Optional[str] = None) -> List[OfflineCustomer]:
        return self.customer_repo.find_offline(search)

    def create_offline(self, data: OfflineCustomerCreate, created_by: Optional[str] = None) -> OfflineCustomer:
        customer = self.customer_repo.create_offline(data, created_by)
        logger.info(f"Offline customer {customer.id} added by {created_by}")
        return customer

    def update_offline(self, customer_id: str, updates: dict) -> OfflineCustomer:
        customer = self.customer_repo.update_offline(customer_id, updates)
        if customer is None:
            raise NotFoundError("Offline customer not found")
        return customer

    def delete_offline(self, customer_id: str):
        if not self.customer_repo.delete_offline(customer_id):
            raise NotFoundError("Offline customer not found")
