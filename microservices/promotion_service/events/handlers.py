"""
Promotion Event Handlers

Handles incoming events from other services.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from core.nats_client import Event
from .models import PromotionSubscribedEventType, OrderCompletedEventData

logger = logging.getLogger(__name__)


class PromotionEventHandler:
    """Handler for promotion service subscribed events"""

    def __init__(self, campaign_service=None):
        self.campaign_service = campaign_service

    def subscriptions(self):
        """Subject patterns this handler consumes"""
        return [event_type.value for event_type in PromotionSubscribedEventType]

    async def on_event(self, event: Event) -> None:
        """NATS callback"""
        await self.handle_event(event.type, event.data)

    async def handle_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Route event to appropriate handler"""
        handlers = {
            PromotionSubscribedEventType.ORDER_COMPLETED.value: self.handle_order_completed,
        }

        handler = handlers.get(event_type)
        if handler:
            try:
                await handler(data)
            except Exception as e:
                logger.error(f"Error handling event {event_type}: {e}", exc_info=True)
        else:
            logger.debug(f"No handler for event type: {event_type}")

    async def handle_order_completed(self, data: Dict[str, Any]) -> None:
        """
        Handle order.completed event

        Adds the order to the analytics of the campaign that discounted it.
        Orders placed without a campaign are ignored.
        """
        try:
            event_data = OrderCompletedEventData(**data)
        except ValidationError as e:
            logger.warning(f"Malformed order.completed payload: {e}")
            return

        if not event_data.campaign_id:
            return

        if not self.campaign_service:
            return

        recorded = await self.campaign_service.record_order(
            event_data.campaign_id,
            event_data.order_amount,
            event_data.discount_amount,
        )
        if recorded:
            logger.info(
                f"Order {event_data.order_id} recorded for campaign {event_data.campaign_id}"
            )


__all__ = ["PromotionEventHandler"]
