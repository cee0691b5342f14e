"""
Resend Connector
Sends transactional email through the Resend HTTP API

Author: TM3
Date: 2026-02-16
"""
import logging
from typing import List, Optional, Union

import httpx

from produce_store.core.config import settings

logger = logging.getLogger(__name__)


class ResendConnector:
    """Connector for POST /emails on the Resend API"""

    def __init__(
        self,
        api_key: str = None,
        sender: str = None,
        api_url: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender or settings.EMAIL_FROM
        self.api_url = (api_url or settings.RESEND_API_URL).rstrip("/")
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send_email(self, to: Union[str, List[str]], subject: str, html: str) -> Optional[str]:
        """
        Send one email

        Returns:
            Resend message id, or None when no API key is configured
        """
        if not self.is_configured:
            logger.warning(f"RESEND_API_KEY not configured, skipping email '{subject}'")
            return None

        recipients = [to] if isinstance(to, str) else list(to)

        async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as client:
            response = await client.post(
                f"{self.api_url}/emails",
                json={
                    "from": self.sender,
                    "to": recipients,
                    "subject": subject,
                    "html": html,
                },
                headers={"Authorization": f"Bearer {self.api_key}"}
            )
            response.raise_for_status()
            data = response.json()

        logger.info(f"Email '{subject}' sent to {', '.join(recipients)}")
        return data.get("id")
