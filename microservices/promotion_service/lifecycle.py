"""
Campaign Lifecycle Manager

State machine for campaign status. Manual commands come from administrators
through the service facade; sweeps come from the scheduler and move
campaigns whose stored dates say they should change state.
"""

import logging
from typing import Dict, List, Optional

from .clock import SystemClock
from .events.models import PromotionEventType
from .events.publishers import CampaignEventPublisher
from .models import Campaign, CampaignStatus
from .protocols import (
    CampaignRepositoryProtocol,
    ClockProtocol,
    CampaignNotFoundError,
    InvalidCampaignStateError,
)

logger = logging.getLogger(__name__)


class CampaignLifecycleManager:
    """Campaign status transitions driven by commands and by the clock"""

    # Valid state transitions
    VALID_TRANSITIONS: Dict[CampaignStatus, List[CampaignStatus]] = {
        CampaignStatus.DRAFT: [CampaignStatus.SCHEDULED, CampaignStatus.ACTIVE, CampaignStatus.ENDED],
        CampaignStatus.SCHEDULED: [CampaignStatus.ACTIVE, CampaignStatus.ENDED],
        CampaignStatus.ACTIVE: [CampaignStatus.PAUSED, CampaignStatus.ENDED],
        CampaignStatus.PAUSED: [CampaignStatus.SCHEDULED, CampaignStatus.ACTIVE, CampaignStatus.ENDED],
        CampaignStatus.ENDED: [],  # Terminal state
    }

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        clock: Optional[ClockProtocol] = None,
        publisher: Optional[CampaignEventPublisher] = None,
    ):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.publisher = publisher or CampaignEventPublisher()

    @classmethod
    def can_transition(cls, current: CampaignStatus, target: CampaignStatus) -> bool:
        """Check if a status transition is allowed"""
        return target in cls.VALID_TRANSITIONS.get(current, [])

    # ====================
    # Manual Commands
    # ====================

    async def activate(self, campaign_id: str, activated_by: Optional[str] = None) -> Campaign:
        """
        Make a campaign ACTIVE immediately.

        Allowed from DRAFT, SCHEDULED and PAUSED. Rejected when the campaign
        is already active, has ended, or its end date has passed.
        """
        campaign = await self._load(campaign_id)

        if campaign.status == CampaignStatus.ACTIVE:
            raise InvalidCampaignStateError("Campaign is already active", campaign.status)

        if campaign.has_expired(self.clock.now()):
            raise InvalidCampaignStateError("Campaign end date has already passed", campaign.status)

        return await self._transition(
            campaign, CampaignStatus.ACTIVE, PromotionEventType.CAMPAIGN_ACTIVATED, activated_by
        )

    async def deactivate(self, campaign_id: str, paused_by: Optional[str] = None) -> Campaign:
        """Pause an ACTIVE campaign"""
        campaign = await self._load(campaign_id)

        if campaign.status != CampaignStatus.ACTIVE:
            raise InvalidCampaignStateError("Campaign is not active", campaign.status)

        return await self._transition(
            campaign, CampaignStatus.PAUSED, PromotionEventType.CAMPAIGN_PAUSED, paused_by
        )

    async def schedule(self, campaign_id: str, scheduled_by: Optional[str] = None) -> Campaign:
        """Hand a DRAFT or PAUSED campaign to the scheduled-activation sweep"""
        campaign = await self._load(campaign_id)

        if campaign.has_expired(self.clock.now()):
            raise InvalidCampaignStateError("Campaign end date has already passed", campaign.status)

        return await self._transition(
            campaign, CampaignStatus.SCHEDULED, PromotionEventType.CAMPAIGN_SCHEDULED, scheduled_by
        )

    async def end(self, campaign_id: str, ended_by: Optional[str] = None) -> Campaign:
        """End a campaign; ending an ENDED campaign returns it unchanged"""
        campaign = await self._load(campaign_id)

        if campaign.status == CampaignStatus.ENDED:
            logger.debug(f"Campaign {campaign_id} already ended")
            return campaign

        return await self._transition(
            campaign, CampaignStatus.ENDED, PromotionEventType.CAMPAIGN_ENDED, ended_by
        )

    # ====================
    # Sweeps
    # ====================

    async def sweep_expired(self) -> int:
        """ACTIVE -> ENDED for every campaign whose end date has passed"""
        now = self.clock.now()
        ended = await self.repository.end_expired_campaigns(now)

        if ended:
            logger.info(f"Ended {len(ended)} expired campaign(s): {', '.join(ended)}")
            for campaign_id in ended:
                await self.publisher.publish_status_changed(
                    PromotionEventType.CAMPAIGN_AUTO_ENDED,
                    campaign_id,
                    CampaignStatus.ENDED,
                    previous_status=CampaignStatus.ACTIVE,
                    automatic=True,
                    occurred_at=now,
                )

        return len(ended)

    async def sweep_scheduled(self) -> int:
        """SCHEDULED -> ACTIVE for every campaign whose window has opened"""
        now = self.clock.now()
        activated = await self.repository.activate_due_campaigns(now)

        if activated:
            logger.info(f"Activated {len(activated)} scheduled campaign(s): {', '.join(activated)}")
            for campaign_id in activated:
                await self.publisher.publish_status_changed(
                    PromotionEventType.CAMPAIGN_AUTO_ACTIVATED,
                    campaign_id,
                    CampaignStatus.ACTIVE,
                    previous_status=CampaignStatus.SCHEDULED,
                    automatic=True,
                    occurred_at=now,
                )

        return len(activated)

    # ====================
    # Internal Helpers
    # ====================

    async def _load(self, campaign_id: str) -> Campaign:
        campaign = await self.repository.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def _transition(
        self,
        campaign: Campaign,
        target: CampaignStatus,
        event_type: PromotionEventType,
        actor: Optional[str],
    ) -> Campaign:
        previous = campaign.status
        if not self.can_transition(previous, target):
            raise InvalidCampaignStateError(
                f"Cannot change campaign from {previous.value} to {target.value}",
                previous,
            )

        # Only applies while the row still holds the status we validated against
        updated = await self.repository.update_campaign_status(
            campaign.campaign_id,
            target,
            expected_status=[previous],
            updated_by=actor,
        )
        if not updated:
            current = await self.repository.get_campaign(campaign.campaign_id)
            if not current:
                raise CampaignNotFoundError(f"Campaign not found: {campaign.campaign_id}")
            raise InvalidCampaignStateError(
                f"Campaign status changed concurrently to {current.status.value}",
                current.status,
            )

        logger.info(
            f"Campaign {campaign.campaign_id} ({campaign.name}) {previous.value} -> {target.value}"
        )

        await self.publisher.publish_status_changed(
            event_type,
            campaign.campaign_id,
            target,
            previous_status=previous,
            changed_by=actor,
            occurred_at=self.clock.now(),
        )

        return updated


__all__ = ["CampaignLifecycleManager"]
