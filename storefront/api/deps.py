"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends
from supabase import Client

from storefront.core.supabase import get_db
from storefront.services.notification_service import NotificationDispatcher, get_notification_dispatcher
from storefront.services.order_service import OrderService


def get_order_service(
    db: Annotated[Client, Depends(get_db)],
    notifications: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
) -> OrderService:
    """Build an order service bound to the app's store and dispatcher."""
    return OrderService(client=db, notifications=notifications)


# Type alias for route signatures
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
