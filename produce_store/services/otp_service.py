"""
OTP Service
Email one-time codes that confirm a customer before ordering

Author: TM3
Date: 2026-02-24
"""
import re
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from passlib.context import CryptContext

from produce_store.core.config import settings
from produce_store.core.exceptions import RateLimitedError, ValidationError
from produce_store.repositories.otp_repository import OtpRepository
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

otp_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

OTP_PATTERN = re.compile(r"^\d{6}$")


def generate_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpService:
    """
    Service for ordering OTPs

    Codes are stored hashed. A user may request one code per
    OTP_RATE_LIMIT_SECONDS; requesting a new one replaces the old one.
    """

    def __init__(
        self,
        otp_repo: Optional[OtpRepository] = None,
        notifications: Optional[NotificationService] = None,
        now: Callable[[], datetime] = _utcnow
    ):
        self.otp_repo = otp_repo or OtpRepository()
        self.notifications = notifications or NotificationService()
        self.now = now

    async def send_code(self, user_id: str, email: str) -> Dict:
        """
        Create and email a new code

        Raises:
            RateLimitedError: a code was sent less than a minute ago
        """
        if not email:
            raise ValidationError("An email address is required to send the code")

        now = self.now()
        since = now - timedelta(seconds=settings.OTP_RATE_LIMIT_SECONDS)
        if self.otp_repo.count_recent(user_id, since) > 0:
            raise RateLimitedError(
                f"Please wait {settings.OTP_RATE_LIMIT_SECONDS} seconds before requesting another code"
            )

        code = generate_code()
        expires_at = now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
        self.otp_repo.replace(user_id, email, otp_context.hash(code), expires_at)

        sent = await self.notifications.send_otp(email, code, settings.OTP_EXPIRY_MINUTES)
        logger.info(f"OTP issued for user {user_id} (email sent: {sent})")

        return {
            "email_sent": sent,
            "expires_at": expires_at.isoformat(),
            "expires_in_minutes": settings.OTP_EXPIRY_MINUTES,
        }

    def verify_code(self, user_id: str, code: str) -> Dict:
        """
        Check a code against the user's active OTP

        Returns:
            {"valid": True} or {"valid": False, "error": ...}

        Raises:
            RateLimitedError: too many failed attempts on this code
        """
        code = (code or "").strip()
        if not OTP_PATTERN.match(code):
            return {"valid": False, "error": "Invalid OTP format"}

        record = self.otp_repo.find_active(user_id)
        if record is None:
            return {"valid": False, "error": "No active OTP. Please request a new code."}

        if (record.get('failed_attempts') or 0) >= settings.OTP_MAX_FAILED_ATTEMPTS:
            logger.warning(f"User {user_id} locked out after too many OTP attempts")
            raise RateLimitedError("Too many failed attempts. Please request a new code.")

        if not otp_context.verify(code, record['otp_code']):
            failures = self.otp_repo.increment_failures(str(record['id']))
            remaining = max(0, settings.OTP_MAX_FAILED_ATTEMPTS - failures)
            logger.info(f"Failed OTP attempt for user {user_id}, {remaining} remaining")
            return {"valid": False, "error": "Invalid OTP code", "attempts_remaining": remaining}

        expires_at = record['expires_at']
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at < self.now():
            self.otp_repo.delete(str(record['id']))
            return {"valid": False, "error": "OTP has expired. Please request a new one."}

        self.otp_repo.mark_verified(str(record['id']))
        logger.info(f"OTP verified for user {user_id}")
        return {"valid": True, "message": "OTP verified successfully"}
