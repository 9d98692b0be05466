"""
Promotion Service Events

Event handlers and publishers for promotion service.
"""

from .models import (
    PromotionEventType,
    PromotionSubscribedEventType,
    CampaignChangedEventData,
    CampaignDeletedEventData,
    CampaignStatusChangedEventData,
    OrderCompletedEventData,
)
from .handlers import PromotionEventHandler
from .publishers import CampaignEventPublisher

__all__ = [
    # Event Types
    "PromotionEventType",
    "PromotionSubscribedEventType",
    # Event Data Models
    "CampaignChangedEventData",
    "CampaignDeletedEventData",
    "CampaignStatusChangedEventData",
    "OrderCompletedEventData",
    # Handler and Publisher
    "PromotionEventHandler",
    "CampaignEventPublisher",
]
