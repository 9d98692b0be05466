"""
Component Test Fixtures for Promotion Service

Provides fixtures for component testing with mocked dependencies.
Uses FastAPI TestClient for API testing.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.promotion.data_contract import (
    BASE_TIME,
    Campaign,
    CampaignStatus,
    PromotionTestDataFactory,
)
from microservices.promotion_service.campaign_service import CampaignService
from microservices.promotion_service.clock import FixedClock


# ====================
# Mock Repository
# ====================


class MockCampaignRepository:
    """In-memory repository honouring the same query semantics as PostgreSQL"""

    def __init__(self):
        self.campaigns: Dict[str, Campaign] = {}
        self.fail_with: Optional[Exception] = None

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    def _check(self):
        if self.fail_with:
            raise self.fail_with

    # Campaign CRUD
    async def save_campaign(self, campaign: Campaign) -> Campaign:
        self._check()
        self.campaigns[campaign.campaign_id] = campaign
        return campaign

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        self._check()
        return self.campaigns.get(campaign_id)

    async def list_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        self._check()
        results = list(self.campaigns.values())
        if status:
            results = [c for c in results if c.status in status]
        results.sort(key=lambda c: c.created_at, reverse=True)
        return results[offset:offset + limit], len(results)

    async def update_campaign(self, campaign_id: str, updates: dict) -> Optional[Campaign]:
        self._check()
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return None
        updated = campaign.model_copy(update={**updates, "updated_at": datetime.now(timezone.utc)})
        self.campaigns[campaign_id] = updated
        return updated

    async def update_campaign_status(
        self,
        campaign_id: str,
        status: CampaignStatus,
        expected_status: Optional[List[CampaignStatus]] = None,
        updated_by: Optional[str] = None,
    ) -> Optional[Campaign]:
        self._check()
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return None
        if expected_status and campaign.status not in expected_status:
            return None
        updated = campaign.model_copy(update={
            "status": status,
            "updated_by": updated_by or campaign.updated_by,
            "updated_at": datetime.now(timezone.utc),
        })
        self.campaigns[campaign_id] = updated
        return updated

    async def delete_campaign(self, campaign_id: str) -> bool:
        self._check()
        return self.campaigns.pop(campaign_id, None) is not None

    # Time-sensitive queries
    async def find_active_campaigns(
        self, now: datetime, limit: Optional[int] = None
    ) -> List[Campaign]:
        self._check()
        results = [
            c for c in self.campaigns.values()
            if c.status == CampaignStatus.ACTIVE and c.start_date <= now <= c.end_date
        ]
        results.sort(key=lambda c: (c.start_date, c.created_at), reverse=True)
        return results[:limit] if limit is not None else results

    async def end_expired_campaigns(self, now: datetime) -> List[str]:
        self._check()
        ended = []
        for campaign_id, c in list(self.campaigns.items()):
            if c.status == CampaignStatus.ACTIVE and c.end_date < now:
                self.campaigns[campaign_id] = c.model_copy(
                    update={"status": CampaignStatus.ENDED, "updated_at": now}
                )
                ended.append(campaign_id)
        return ended

    async def activate_due_campaigns(self, now: datetime) -> List[str]:
        self._check()
        activated = []
        for campaign_id, c in list(self.campaigns.items()):
            if c.status == CampaignStatus.SCHEDULED and c.start_date <= now <= c.end_date:
                self.campaigns[campaign_id] = c.model_copy(
                    update={"status": CampaignStatus.ACTIVE, "updated_at": now}
                )
                activated.append(campaign_id)
        return activated

    # Analytics
    async def increment_analytics(
        self, campaign_id: str, order_amount: Decimal, discount_amount: Decimal
    ) -> bool:
        self._check()
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return False
        self.campaigns[campaign_id] = campaign.model_copy(update={
            "total_orders": campaign.total_orders + 1,
            "total_revenue": campaign.total_revenue + order_amount,
            "total_discount": campaign.total_discount + discount_amount,
        })
        return True


# ====================
# Mock Event Bus
# ====================


class MockEventBus:
    """Mock event bus for component testing"""

    def __init__(self):
        self.published_events: List[Dict[str, Any]] = []
        self.is_connected = True
        self.fail = False

    async def publish_event(self, event) -> bool:
        if self.fail:
            raise ConnectionError("NATS unavailable")
        self.published_events.append(event.to_dict())
        return True

    async def close(self) -> None:
        self.is_connected = False

    def get_events_by_type(self, event_type: str) -> List[Dict]:
        return [e for e in self.published_events if e["type"] == event_type]

    def clear_events(self):
        self.published_events = []


# ====================
# Fixtures
# ====================


@pytest.fixture
def factory():
    """Provide test data factory"""
    return PromotionTestDataFactory()


@pytest.fixture
def mock_repository():
    return MockCampaignRepository()


@pytest.fixture
def mock_event_bus():
    return MockEventBus()


@pytest.fixture
def clock():
    return FixedClock(BASE_TIME)


@pytest.fixture
def service(mock_repository, mock_event_bus, clock):
    return CampaignService(
        repository=mock_repository,
        event_bus=mock_event_bus,
        clock=clock,
    )


@pytest.fixture
def add_campaign(mock_repository, factory):
    """Store a campaign built by the factory and return it"""

    def _add(**kwargs) -> Campaign:
        campaign = factory.make_campaign(**kwargs)
        mock_repository.campaigns[campaign.campaign_id] = campaign
        return campaign

    return _add
