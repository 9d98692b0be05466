"""
Promotion Event Data Models

Event type definitions and data structures for promotion service events.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Event Type Definitions
# =============================================================================


class PromotionEventType(str, Enum):
    """
    Events published by promotion_service.

    Other services should reference these when subscribing.
    """
    # Administrative changes
    CAMPAIGN_CREATED = "campaign.created"
    CAMPAIGN_UPDATED = "campaign.updated"
    CAMPAIGN_DELETED = "campaign.deleted"

    # Manual lifecycle commands
    CAMPAIGN_SCHEDULED = "campaign.scheduled"
    CAMPAIGN_ACTIVATED = "campaign.activated"
    CAMPAIGN_PAUSED = "campaign.paused"
    CAMPAIGN_ENDED = "campaign.ended"

    # Sweep transitions
    CAMPAIGN_AUTO_ACTIVATED = "campaign.auto_activated"
    CAMPAIGN_AUTO_ENDED = "campaign.auto_ended"


class PromotionSubscribedEventType(str, Enum):
    """Events that promotion_service subscribes to from other services"""
    ORDER_COMPLETED = "order.completed"


# =============================================================================
# Published Event Data Models
# =============================================================================


class CampaignChangedEventData(BaseModel):
    """Data for campaign.created / campaign.updated"""
    campaign_id: str
    name: str
    status: str
    start_date: datetime
    end_date: datetime
    changed_by: Optional[str] = None
    changed_fields: List[str] = Field(default_factory=list)


class CampaignDeletedEventData(BaseModel):
    """Data for campaign.deleted"""
    campaign_id: str
    deleted_by: Optional[str] = None


class CampaignStatusChangedEventData(BaseModel):
    """Data for manual and automatic status transitions"""
    campaign_id: str
    previous_status: Optional[str] = None
    new_status: str
    changed_by: Optional[str] = None
    automatic: bool = False
    occurred_at: datetime


# =============================================================================
# Subscribed Event Data Models
# =============================================================================


class OrderCompletedEventData(BaseModel):
    """Data from order.completed; orders without a campaign are ignored"""
    order_id: Optional[str] = None
    campaign_id: Optional[str] = None
    order_amount: Decimal = Field(..., ge=0)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)


__all__ = [
    "PromotionEventType",
    "PromotionSubscribedEventType",
    "CampaignChangedEventData",
    "CampaignDeletedEventData",
    "CampaignStatusChangedEventData",
    "OrderCompletedEventData",
]
