"""Fire-and-forget dispatch of order emails."""

from __future__ import annotations

import asyncio
import logging

from fastapi import Request

from storefront.api.middleware.error_handler import NotificationError
from storefront.models.order import Order
from storefront.services.email_service import EmailService

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Sends order emails in background tasks.

    ``dispatch`` returns immediately; a failed send is logged and never
    reaches the caller. Created once at application startup and drained at
    shutdown so in-flight emails are not dropped.
    """

    def __init__(self, email_service: EmailService | None = None) -> None:
        """Initialize the dispatcher.

        Args:
            email_service: Optional email service for testing.
        """
        self._email_service = email_service
        self._tasks: set[asyncio.Task] = set()

    @property
    def email_service(self) -> EmailService:
        """Get email service."""
        if self._email_service is None:
            self._email_service = EmailService()
        return self._email_service

    @property
    def pending_count(self) -> int:
        """Number of sends still in flight."""
        return len(self._tasks)

    def dispatch(self, order: Order) -> asyncio.Task:
        """Schedule the email for an order without waiting for it.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(self._send(order), name=f"order-email-{order['orderId']}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(self, order: Order) -> None:
        try:
            await self.email_service.send_order_email(order)
        except NotificationError as e:
            logger.error("Order email failed for %s: %s", order["orderId"], str(e))
        except Exception:
            logger.exception("Unexpected error sending order email for %s", order["orderId"])

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight sends to finish.

        Args:
            timeout: Seconds to wait before cancelling what is left.
        """
        if not self._tasks:
            return
        pending = list(self._tasks)
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning("Cancelled %d pending order email(s) at shutdown", len(not_done))


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    """FastAPI dependency returning the dispatcher created at startup."""
    dispatcher = getattr(request.app.state, "notifications", None)
    if dispatcher is None:
        raise RuntimeError("Notification dispatcher is not initialized")
    return dispatcher
