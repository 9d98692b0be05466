"""
Promotion Service Business Logic

Campaign administration, lifecycle commands, discount resolution and order
analytics behind one facade used by the HTTP layer and event handlers.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .analytics import CampaignAnalyticsAccumulator
from .clock import SystemClock
from .discount_resolver import (
    DEFAULT_BADGE_TEXT,
    DEFAULT_BADGE_TEXT_LOCALIZED,
    DiscountResolver,
)
from .events.publishers import CampaignEventPublisher
from .identifiers import new_campaign_id, validate_campaign_id
from .lifecycle import CampaignLifecycleManager
from .models import (
    MAX_CAMPAIGN_DISCOUNT_PERCENT,
    Campaign,
    CampaignAnalytics,
    CampaignCreateRequest,
    CampaignStatus,
    CampaignUpdateRequest,
    DiscountCalculationRequest,
    DiscountDecision,
    BatchDiscountRequest,
    ProductDiscountResult,
    ProductPricing,
)
from .protocols import (
    CampaignRepositoryProtocol,
    ClockProtocol,
    EventBusProtocol,
    CampaignNotFoundError,
    InvalidCampaignStateError,
    CampaignValidationError,
)

logger = logging.getLogger(__name__)


class CampaignService:
    """Promotion service business logic layer"""

    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        clock: Optional[ClockProtocol] = None,
        default_badge_text: str = DEFAULT_BADGE_TEXT,
        default_badge_text_localized: str = DEFAULT_BADGE_TEXT_LOCALIZED,
    ):
        self.repository = repository
        self.event_bus = event_bus
        self.clock = clock or SystemClock()
        self.publisher = CampaignEventPublisher(event_bus)

        self.lifecycle = CampaignLifecycleManager(repository, self.clock, self.publisher)
        self.resolver = DiscountResolver(
            repository,
            self.clock,
            default_badge_text=default_badge_text,
            default_badge_text_localized=default_badge_text_localized,
        )
        self.analytics = CampaignAnalyticsAccumulator(repository)

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(
        self,
        request: CampaignCreateRequest,
        created_by: str,
    ) -> Campaign:
        """
        Create a new campaign in DRAFT status.

        The campaign does nothing until it is activated or scheduled.
        """
        self._validate_window(request.start_date, request.end_date)
        self._validate_applies_to(request.applies_to)
        self._validate_max_discount(request.max_discount_percent)

        now = self.clock.now()
        campaign = Campaign(
            campaign_id=new_campaign_id(),
            name=request.name,
            description=request.description,
            status=CampaignStatus.DRAFT,
            start_date=request.start_date,
            end_date=request.end_date,
            applies_to=request.applies_to,
            only_products_with_permission=request.only_products_with_permission,
            discount_source=request.discount_source,
            max_discount_percent=request.max_discount_percent,
            use_max_as_override=request.use_max_as_override,
            badge_text=request.badge_text,
            badge_text_localized=request.badge_text_localized,
            created_by=created_by,
            updated_by=created_by,
            created_at=now,
            updated_at=now,
        )

        campaign = await self.repository.save_campaign(campaign)
        logger.info(f"Campaign created: {campaign.name} ({campaign.campaign_id})")

        await self.publisher.publish_campaign_created(campaign)

        return campaign

    async def get_campaign(self, campaign_id: str) -> Campaign:
        """Get campaign by ID"""
        validate_campaign_id(campaign_id)
        campaign = await self.repository.get_campaign(campaign_id)

        if not campaign:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        return campaign

    async def list_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns, newest first"""
        limit = max(1, min(limit, self.MAX_PAGE_SIZE))
        offset = max(0, offset)
        return await self.repository.list_campaigns(status=status, limit=limit, offset=offset)

    async def update_campaign(
        self,
        campaign_id: str,
        request: CampaignUpdateRequest,
        updated_by: Optional[str] = None,
    ) -> Campaign:
        """
        Update campaign settings.

        Ended campaigns are read-only. Date and audience rules are checked
        against the campaign as it would look after the update.
        """
        campaign = await self.get_campaign(campaign_id)

        if campaign.status == CampaignStatus.ENDED:
            raise InvalidCampaignStateError(
                "Ended campaigns cannot be modified",
                campaign.status
            )

        updates: Dict[str, Any] = request.model_dump(exclude_unset=True, exclude_none=True)

        self._validate_window(
            updates.get("start_date", campaign.start_date),
            updates.get("end_date", campaign.end_date),
        )
        if "applies_to" in updates:
            self._validate_applies_to(updates["applies_to"])
            updates["applies_to"] = list(dict.fromkeys(updates["applies_to"]))
        if "max_discount_percent" in updates:
            self._validate_max_discount(updates["max_discount_percent"])

        changed_fields = [
            field for field, value in updates.items() if getattr(campaign, field) != value
        ]
        if not changed_fields:
            return campaign

        updates = {field: updates[field] for field in changed_fields}
        updates["updated_by"] = updated_by

        updated = await self.repository.update_campaign(campaign_id, updates)
        if not updated:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        logger.info(f"Campaign {campaign_id} updated: {', '.join(changed_fields)}")

        await self.publisher.publish_campaign_updated(updated, changed_fields, updated_by)

        return updated

    async def delete_campaign(
        self,
        campaign_id: str,
        deleted_by: Optional[str] = None,
    ) -> bool:
        """Delete campaign permanently"""
        await self.get_campaign(campaign_id)

        deleted = await self.repository.delete_campaign(campaign_id)
        if not deleted:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        logger.info(f"Campaign deleted: {campaign_id}")

        await self.publisher.publish_campaign_deleted(campaign_id, deleted_by)

        return True

    # ====================
    # Campaign Lifecycle
    # ====================

    async def activate_campaign(self, campaign_id: str, activated_by: Optional[str] = None) -> Campaign:
        validate_campaign_id(campaign_id)
        return await self.lifecycle.activate(campaign_id, activated_by)

    async def deactivate_campaign(self, campaign_id: str, paused_by: Optional[str] = None) -> Campaign:
        validate_campaign_id(campaign_id)
        return await self.lifecycle.deactivate(campaign_id, paused_by)

    async def schedule_campaign(self, campaign_id: str, scheduled_by: Optional[str] = None) -> Campaign:
        validate_campaign_id(campaign_id)
        return await self.lifecycle.schedule(campaign_id, scheduled_by)

    async def end_campaign(self, campaign_id: str, ended_by: Optional[str] = None) -> Campaign:
        validate_campaign_id(campaign_id)
        return await self.lifecycle.end(campaign_id, ended_by)

    async def sweep_expired_campaigns(self) -> int:
        return await self.lifecycle.sweep_expired()

    async def sweep_scheduled_campaigns(self) -> int:
        return await self.lifecycle.sweep_scheduled()

    # ====================
    # Discounts
    # ====================

    async def get_active_campaign(self) -> Optional[Campaign]:
        return await self.resolver.get_active_campaign()

    async def get_active_campaigns(self) -> List[Campaign]:
        return await self.resolver.get_active_campaigns()

    async def calculate_discount(
        self, request: DiscountCalculationRequest
    ) -> Optional[DiscountDecision]:
        """Discount for one product; None when no campaign discount applies"""
        product = ProductPricing(
            price=request.price,
            referral_discount_percent=request.referral_discount_percent,
        )
        return await self.resolver.resolve(
            product,
            seller_default_discount=request.seller_default_discount,
            is_referral_visitor=request.is_referral_visitor,
        )

    async def calculate_discounts(self, request: BatchDiscountRequest) -> List[ProductDiscountResult]:
        decisions = await self.resolver.resolve_many(
            request.products,
            seller_default_discount=request.seller_default_discount,
            is_referral_visitor=request.is_referral_visitor,
        )
        return [
            ProductDiscountResult(product_id=product.product_id, discount=decision)
            for product, decision in zip(request.products, decisions)
        ]

    # ====================
    # Analytics
    # ====================

    async def record_order(
        self,
        campaign_id: str,
        order_amount: Decimal,
        discount_amount: Decimal,
    ) -> bool:
        return await self.analytics.record_order(campaign_id, order_amount, discount_amount)

    async def get_campaign_analytics(self, campaign_id: str) -> CampaignAnalytics:
        return await self.analytics.get_analytics(campaign_id)

    # ====================
    # Validation Helpers
    # ====================

    def _validate_window(self, start_date: datetime, end_date: datetime) -> None:
        """Validate campaign date range"""
        if start_date.tzinfo is None:
            start_date = start_date.replace(tzinfo=timezone.utc)
        if end_date.tzinfo is None:
            end_date = end_date.replace(tzinfo=timezone.utc)
        if start_date >= end_date:
            raise CampaignValidationError("Start date must be before end date", "end_date")

    def _validate_applies_to(self, applies_to: List) -> None:
        if not applies_to:
            raise CampaignValidationError("Campaign must apply to at least one audience", "applies_to")

    def _validate_max_discount(self, percent: Decimal) -> None:
        if percent < 0 or percent > MAX_CAMPAIGN_DISCOUNT_PERCENT:
            raise CampaignValidationError(
                f"Max discount percent must be between 0 and {MAX_CAMPAIGN_DISCOUNT_PERCENT}",
                "max_discount_percent"
            )


__all__ = ["CampaignService"]
