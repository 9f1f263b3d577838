#!/usr/bin/env python
"""Script to walk one checkout through the full flow against the configured store.

This script:
1. Selects a product variant and quantity
2. Submits a sample checkout form
3. Picks the simulated payment outcome and places the order
4. Reads the order back and prints the status page content

Usage:
    python scripts/simulate_checkout.py [approved|declined|error] [--color Black] [--size M] [--quantity 2]

Requirements:
    - SUPABASE_URL and SUPABASE_SECRET_KEY environment variables must be set
    - The orders table must exist (see supabase/migrations)
    - RESEND_API_KEY is optional; without it the email failure is only logged
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.api.middleware.error_handler import APIError, ValidationError
from storefront.core.supabase import create_supabase_client
from storefront.models.order import PAYMENT_STATUSES
from storefront.services.checkout_flow import CheckoutFlow, build_status_page
from storefront.services.notification_service import NotificationDispatcher
from storefront.services.order_service import OrderService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SAMPLE_FORM = {
    "fullName": "Jane O'Neil",
    "email": "Jane.ONeil@Example.com",
    "phone": "(555) 123-4567",
    "address": "123 Market Street",
    "city": "San Francisco",
    "state": "ca",
    "zipCode": "94103",
    "cardNumber": "4532 0151 1283 0366",
    "expiryDate": "12/99",
    "cvv": "123",
}


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Simulate a storefront checkout")
    parser.add_argument("outcome", nargs="?", default="approved", choices=PAYMENT_STATUSES)
    parser.add_argument("--color", default="Black")
    parser.add_argument("--size", default="M")
    parser.add_argument("--quantity", type=int, default=2)
    return parser.parse_args()


async def main() -> None:
    """Main entry point for the simulation script."""
    args = parse_args()

    notifications = NotificationDispatcher()
    service = OrderService(client=create_supabase_client(), notifications=notifications)
    flow = CheckoutFlow(service)

    try:
        product = flow.select_product({"color": args.color, "size": args.size, "quantity": args.quantity})
        logger.info("Selected %s (%s/%s) x%d", product["name"], args.color, args.size, args.quantity)

        flow.submit_form(SAMPLE_FORM)
        logger.info("Form accepted, total $%.2f", flow.total)

        order = await flow.choose_outcome(args.outcome)
        logger.info("Order %s created, redirecting to %s", order["orderId"], flow.redirect_url)

        page = build_status_page(await service.get_order_by_id(order["orderId"]), args.outcome)
        logger.info("=" * 60)
        logger.info("%s - %s", page.title, page.message)
        for line in page.guidance:
            logger.info("  - %s", line)
        logger.info("Card: %s", page.masked_card)
        logger.info("=" * 60)

    except ValidationError as e:
        for field, message in e.fields.items():
            logger.error("%s: %s", field, message)
        sys.exit(1)
    except APIError as e:
        logger.error("Checkout failed: %s", flow.error or e.message)
        sys.exit(1)
    finally:
        await notifications.drain(timeout=10)


if __name__ == "__main__":
    asyncio.run(main())
