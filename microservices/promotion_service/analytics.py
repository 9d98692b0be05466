"""
Campaign Analytics Accumulator

Cumulative order count, revenue and discount per campaign.
"""

import logging
from decimal import Decimal

from .identifiers import validate_campaign_id
from .models import CampaignAnalytics
from .money import ZERO_MONEY, to_money
from .protocols import (
    CampaignRepositoryProtocol,
    CampaignDataConsistencyError,
    CampaignNotFoundError,
    InvalidCampaignIdError,
)

logger = logging.getLogger(__name__)


class CampaignAnalyticsAccumulator:
    """Records completed orders against the campaign that discounted them"""

    def __init__(self, repository: CampaignRepositoryProtocol):
        self.repository = repository

    async def record_order(
        self,
        campaign_id: str,
        order_amount: Decimal,
        discount_amount: Decimal,
    ) -> bool:
        """
        Add one order to the campaign's counters.

        Order completion must not fail because its campaign was deleted, so a
        missing or malformed campaign is logged and False is returned.
        """
        try:
            validate_campaign_id(campaign_id)
            updated = await self.repository.increment_analytics(
                campaign_id, to_money(order_amount), to_money(discount_amount)
            )
            if not updated:
                raise CampaignDataConsistencyError(
                    f"Order references missing campaign {campaign_id}", campaign_id
                )
        except (InvalidCampaignIdError, CampaignDataConsistencyError) as e:
            logger.warning(f"Campaign analytics not recorded: {e}")
            return False

        logger.debug(
            f"Recorded order for campaign {campaign_id}: "
            f"amount={order_amount} discount={discount_amount}"
        )
        return True

    async def get_analytics(self, campaign_id: str) -> CampaignAnalytics:
        validate_campaign_id(campaign_id)
        campaign = await self.repository.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        revenue = to_money(campaign.total_revenue)
        discount = to_money(campaign.total_discount)

        if campaign.total_orders:
            average_order_value = to_money(revenue / campaign.total_orders)
        else:
            average_order_value = ZERO_MONEY

        # Share of the pre-discount amount given away
        gross = revenue + discount
        discount_rate = to_money(discount * 100 / gross) if gross else ZERO_MONEY

        return CampaignAnalytics(
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            status=campaign.status,
            total_orders=campaign.total_orders,
            total_revenue=revenue,
            total_discount=discount,
            average_order_value=average_order_value,
            discount_rate_percent=discount_rate,
        )


__all__ = ["CampaignAnalyticsAccumulator"]
