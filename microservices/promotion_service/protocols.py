"""
Promotion Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .models import Campaign, CampaignStatus


# ====================
# Repository Protocol
# ====================


class CampaignRepositoryProtocol(Protocol):
    """Protocol for campaign data repository"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    # Campaign CRUD
    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Insert a campaign"""
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        ...

    async def list_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns, newest first"""
        ...

    async def update_campaign(
        self, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Update campaign fields"""
        ...

    async def update_campaign_status(
        self,
        campaign_id: str,
        status: CampaignStatus,
        expected_status: Optional[List[CampaignStatus]] = None,
        updated_by: Optional[str] = None,
    ) -> Optional[Campaign]:
        """
        Set campaign status.

        When ``expected_status`` is given the row is only changed while its
        current status is one of them; None is returned if nothing matched.
        """
        ...

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Delete campaign, False if it did not exist"""
        ...

    # Time-sensitive queries
    async def find_active_campaigns(
        self, now: datetime, limit: Optional[int] = None
    ) -> List[Campaign]:
        """ACTIVE campaigns whose window contains ``now``, latest start first"""
        ...

    # Sweeps
    async def end_expired_campaigns(self, now: datetime) -> List[str]:
        """ACTIVE -> ENDED for every campaign with end_date < now"""
        ...

    async def activate_due_campaigns(self, now: datetime) -> List[str]:
        """SCHEDULED -> ACTIVE for every campaign whose window contains now"""
        ...

    # Analytics
    async def increment_analytics(
        self, campaign_id: str, order_amount: Decimal, discount_amount: Decimal
    ) -> bool:
        """Atomically add one order to the campaign counters"""
        ...


# ====================
# Collaborator Protocols
# ====================


class ClockProtocol(Protocol):
    """Source of the current instant"""

    def now(self) -> datetime:
        """Timezone-aware current time"""
        ...


class EventBusProtocol(Protocol):
    """Protocol for event bus"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event"""
        ...


# ====================
# Custom Exceptions
# ====================


class CampaignServiceError(Exception):
    """Base exception for promotion service errors"""
    pass


class CampaignNotFoundError(CampaignServiceError):
    """Raised when campaign is not found"""
    pass


class InvalidCampaignIdError(CampaignServiceError):
    """Raised when a campaign identifier is malformed"""
    pass


class InvalidCampaignStateError(CampaignServiceError):
    """Raised when campaign is in invalid state for operation"""

    def __init__(self, message: str, current_status: Optional[CampaignStatus] = None):
        super().__init__(message)
        self.current_status = current_status


class CampaignValidationError(CampaignServiceError):
    """Raised when campaign validation fails"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CampaignDataConsistencyError(CampaignServiceError):
    """Order analytics reference a campaign that no longer exists"""

    def __init__(self, message: str, campaign_id: Optional[str] = None):
        super().__init__(message)
        self.campaign_id = campaign_id


__all__ = [
    "CampaignRepositoryProtocol",
    "ClockProtocol",
    "EventBusProtocol",
    "CampaignServiceError",
    "CampaignNotFoundError",
    "InvalidCampaignIdError",
    "InvalidCampaignStateError",
    "CampaignValidationError",
    "CampaignDataConsistencyError",
]
