"""
Promotion Event Publishers

Publishes campaign events to NATS.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.nats_client import EventType, ServiceSource, create_event
from ..models import Campaign, CampaignStatus
from .models import (
    PromotionEventType,
    CampaignChangedEventData,
    CampaignDeletedEventData,
    CampaignStatusChangedEventData,
)

logger = logging.getLogger(__name__)


class CampaignEventPublisher:
    """Publisher for promotion service events"""

    def __init__(self, event_bus=None):
        self.event_bus = event_bus

    async def publish(
        self,
        event_type: PromotionEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Publish an event.

        Args:
            event_type: The event type enum
            data: Event data payload

        Returns:
            True if published successfully, False otherwise. Failures are
            logged and never raised to the caller.
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = create_event(
                event_type=EventType(event_type.value),
                source=ServiceSource.PROMOTION_SERVICE,
                data=data,
                subject=data.get("campaign_id"),
            )
            published = await self.event_bus.publish_event(event)
            logger.debug(f"Published event: {event_type.value}")
            return bool(published)

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    # ====================
    # Administrative Events
    # ====================

    async def publish_campaign_created(self, campaign: Campaign) -> bool:
        data = CampaignChangedEventData(
            campaign_id=campaign.campaign_id,
            name=campaign.name,
            status=campaign.status.value,
            start_date=campaign.start_date,
            end_date=campaign.end_date,
            changed_by=campaign.created_by,
        )
        return await self.publish(PromotionEventType.CAMPAIGN_CREATED, data.model_dump(mode="json"))

    async def publish_campaign_updated(
        self, campaign: Campaign, changed_fields: List[str], updated_by: Optional[str] = None
    ) -> bool:
        data = CampaignChangedEventData(
            campaign_id=campaign.campaign_id,
            name=campaign.name,
            status=campaign.status.value,
            start_date=campaign.start_date,
            end_date=campaign.end_date,
            changed_by=updated_by,
            changed_fields=changed_fields,
        )
        return await self.publish(PromotionEventType.CAMPAIGN_UPDATED, data.model_dump(mode="json"))

    async def publish_campaign_deleted(self, campaign_id: str, deleted_by: Optional[str] = None) -> bool:
        data = CampaignDeletedEventData(campaign_id=campaign_id, deleted_by=deleted_by)
        return await self.publish(PromotionEventType.CAMPAIGN_DELETED, data.model_dump(mode="json"))

    # ====================
    # Lifecycle Events
    # ====================

    async def publish_status_changed(
        self,
        event_type: PromotionEventType,
        campaign_id: str,
        new_status: CampaignStatus,
        previous_status: Optional[CampaignStatus] = None,
        changed_by: Optional[str] = None,
        automatic: bool = False,
        occurred_at: Optional[datetime] = None,
    ) -> bool:
        data = CampaignStatusChangedEventData(
            campaign_id=campaign_id,
            previous_status=previous_status.value if previous_status else None,
            new_status=new_status.value,
            changed_by=changed_by,
            automatic=automatic,
            occurred_at=occurred_at or datetime.now(timezone.utc),
        )
        return await self.publish(event_type, data.model_dump(mode="json"))


__all__ = ["CampaignEventPublisher"]
