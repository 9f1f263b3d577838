"""Email service using Resend for order emails."""

import asyncio
import logging
from html import escape
from typing import Any

import resend

from storefront.api.middleware.error_handler import NotificationError
from storefront.core.config import get_settings
from storefront.models.order import Order

logger = logging.getLogger(__name__)

FAILURE_REASONS = {
    "declined": "Card was declined",
    "error": "Gateway error",
}


def render_order_email(order: Order, frontend_url: str) -> dict[str, str]:
    """Build subject, HTML and text bodies for an order outcome.

    Approved orders get a confirmation; declined and errored orders get a
    failure notice with the reason.

    Args:
        order: The created order.
        frontend_url: Base URL used for the order status link.

    Returns:
        dict: ``subject``, ``html`` and ``text`` keys.
    """
    order_id = order["orderId"]
    customer = order["customer"]
    product = order["product"]
    status_url = f"{frontend_url}/thank-you/{order_id}"
    name = escape(customer["fullName"])

    if order["payment"]["status"] == "approved":
        subject = f"Order Confirmed - #{order_id}"
        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Order Confirmed</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="color: #111827;">Order Confirmed!</h1>
    <p>Thank you for your order, {name}!</p>

    <div style="background: #f9fafb; padding: 25px; border-radius: 10px; margin: 20px 0;">
        <h2 style="margin-top: 0;">Order Details:</h2>
        <p>Order Number: {order_id}</p>
        <p>Product: {escape(product["name"])} ({escape(product["variant"]["color"])}, {escape(product["variant"]["size"])})</p>
        <p>Quantity: {product["quantity"]}</p>
        <p>Total: ${order["total"]:.2f}</p>
    </div>

    <p>We'll send you shipping information soon.</p>
    <p style="font-size: 12px; color: #9ca3af;">
        View your order: <a href="{status_url}" style="color: #667eea;">{status_url}</a>
    </p>
</body>
</html>
"""
        text_content = f"""
Order Confirmed!

Thank you for your order, {customer["fullName"]}!

Order Number: {order_id}
Product: {product["name"]} ({product["variant"]["color"]}, {product["variant"]["size"]})
Quantity: {product["quantity"]}
Total: ${order["total"]:.2f}

We'll send you shipping information soon.
View your order: {status_url}
"""
    else:
        reason = FAILURE_REASONS.get(order["payment"]["status"], "Gateway error")
        subject = f"Order Failed - #{order_id}"
        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Order Failed</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="color: #b91c1c;">Order Failed</h1>
    <p>Hi {name},</p>
    <p>Unfortunately, your order #{order_id} could not be processed.</p>
    <p>Reason: {reason}</p>
    <p>Please try again or contact support.</p>
</body>
</html>
"""
        text_content = f"""
Order Failed

Hi {customer["fullName"]},

Unfortunately, your order #{order_id} could not be processed.
Reason: {reason}

Please try again or contact support.
"""

    return {"subject": subject, "html": html_content, "text": text_content}


class EmailService:
    """Service for sending order emails via Resend."""

    def __init__(self) -> None:
        """Initialize email service with Resend API key."""
        settings = get_settings()
        resend.api_key = settings.resend_api_key
        self.enabled = settings.email_enabled
        self.from_email = settings.email_from_address
        self.frontend_url = settings.frontend_url

    async def send_order_email(self, order: Order) -> dict[str, Any]:
        """Send the confirmation or failure email for an order.

        Args:
            order: The created order.

        Returns:
            dict: ``success`` flag and the Resend email ID.

        Raises:
            NotificationError: If Resend is not configured or the send fails.
        """
        if not self.enabled:
            raise NotificationError("Resend API key is not configured")

        to_email = order["customer"]["email"]
        content = render_order_email(order, self.frontend_url)

        try:
            # The Resend SDK is blocking
            response = await asyncio.to_thread(
                resend.Emails.send,
                {
                    "from": self.from_email,
                    "to": [to_email],
                    "subject": content["subject"],
                    "html": content["html"],
                    "text": content["text"],
                },
            )
        except Exception as e:
            raise NotificationError(f"Failed to send order email to {to_email}: {e}") from e

        logger.info(
            "Order email sent for %s (%s), id: %s",
            order["orderId"],
            order["payment"]["status"],
            response.get("id"),
        )
        return {"success": True, "email_id": response.get("id")}
