import logging
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from parrita.config import WEBHOOK_TIMEOUT
from parrita.models import N8nWebhook


logger = logging.getLogger(__name__)

CONVERSATION_QUALIFIED = "conversation_qualified"
BLUEPRINT_GENERATED = "blueprint_generated"


class WebhookNotifier:
    """Posts conversation events to the active n8n webhooks, best effort."""

    def __init__(self, session_factory, client: Optional[httpx.AsyncClient] = None):
        self.session_factory = session_factory
        self.client = client

    def _active_urls(self, event: str):

        db = self.session_factory()
        try:
            return [
                url
                for url in db.scalars(
                    select(N8nWebhook.webhook_url)
                    .where(N8nWebhook.trigger_event == event)
                    .where(N8nWebhook.is_active.is_(True))
                )
                if url
            ]
        finally:
            db.close()

    async def _post(self, client: httpx.AsyncClient, url: str, body: dict) -> bool:

        try:
            res = await client.post(url, json=body, timeout=WEBHOOK_TIMEOUT)
            res.raise_for_status()
            logger.info("Webhook %s sent to %s | status=%s", body["event"], url, res.status_code)
            return True

        except httpx.HTTPError as e:
            logger.error("Error triggering webhook %s: %s", url, e)
            return False

    async def notify(self, event: str, payload: dict) -> int:
        """Send one event to every matching webhook. Returns the delivery count."""

        try:
            urls = self._active_urls(event)
        except SQLAlchemyError as e:
            logger.error("Could not load webhooks for %s: %s", event, e)
            return 0

        if not urls:
            return 0

        body = {
            "event": event,
            **payload,
            "timestamp": datetime.utcnow().isoformat()
        }

        if self.client is not None:
            results = [await self._post(self.client, url, body) for url in urls]
        else:
            async with httpx.AsyncClient() as client:
                results = [await self._post(client, url, body) for url in urls]

        return sum(results)
