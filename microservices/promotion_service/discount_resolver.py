"""
Discount Resolver

Combines the active campaign, a product's referral permission, the seller's
default discount and the visitor's referral status into one discount
decision. ``compute_discount`` is pure; ``DiscountResolver`` adds the
active-campaign lookup.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from .clock import SystemClock
from .models import (
    Campaign,
    DiscountDecision,
    DiscountSource,
    ProductPricing,
)
from .money import (
    clamp_percent,
    percent_of,
    to_money,
    to_percent,
)
from .protocols import CampaignRepositoryProtocol, ClockProtocol

logger = logging.getLogger(__name__)

DEFAULT_BADGE_TEXT = "Campaign price"
DEFAULT_BADGE_TEXT_LOCALIZED = "აქციის ფასი"


def compute_discount(
    campaign: Optional[Campaign],
    product: ProductPricing,
    seller_default_discount: Optional[Decimal] = None,
    is_referral_visitor: bool = False,
    default_badge_text: str = DEFAULT_BADGE_TEXT,
    default_badge_text_localized: str = DEFAULT_BADGE_TEXT_LOCALIZED,
) -> Optional[DiscountDecision]:
    """
    Resolve the campaign discount for one product.

    Args:
        campaign: The active campaign, or None when there is none
        product: Price and referral permission of the product
        seller_default_discount: Seller's default referral percent, used
            only by ARTIST_DEFAULT campaigns
        is_referral_visitor: Whether the visitor arrived through a referral link
        default_badge_text: Badge used when the campaign sets none
        default_badge_text_localized: Localized badge fallback

    Returns:
        The discount decision, or None when no discount applies
    """
    if campaign is None:
        return None

    # Referral visitors always pass; everyone else needs ALL_VISITORS
    if not campaign.applies_to_all_visitors and not is_referral_visitor:
        return None

    product_percent = to_percent(product.referral_discount_percent)
    if campaign.only_products_with_permission and product_percent == 0:
        return None

    if campaign.discount_source == DiscountSource.OVERRIDE:
        percent = to_percent(campaign.max_discount_percent)
    elif campaign.discount_source == DiscountSource.ARTIST_DEFAULT and seller_default_discount is not None:
        percent = to_percent(seller_default_discount)
    else:
        percent = product_percent

    if not campaign.use_max_as_override:
        percent = clamp_percent(percent, to_percent(campaign.max_discount_percent))

    price = to_money(product.price)
    discount_amount = percent_of(price, percent)
    final_price = to_money(price - discount_amount)

    return DiscountDecision(
        discount_percent=percent,
        discount_amount=discount_amount,
        final_price=final_price,
        campaign_id=campaign.campaign_id,
        campaign_name=campaign.name,
        badge_text=campaign.badge_text or default_badge_text,
        badge_text_localized=campaign.badge_text_localized or default_badge_text_localized,
    )


class DiscountResolver:
    """Discount decisions against whichever campaign is active right now"""

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        clock: Optional[ClockProtocol] = None,
        default_badge_text: str = DEFAULT_BADGE_TEXT,
        default_badge_text_localized: str = DEFAULT_BADGE_TEXT_LOCALIZED,
    ):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.default_badge_text = default_badge_text
        self.default_badge_text_localized = default_badge_text_localized

    async def get_active_campaign(self) -> Optional[Campaign]:
        """
        The campaign that is ACTIVE with ``now`` inside its window.

        At most one is expected; if several match, the latest-starting one
        wins and a warning is logged.
        """
        campaigns = await self.repository.find_active_campaigns(self.clock.now(), limit=2)
        if not campaigns:
            return None

        if len(campaigns) > 1:
            logger.warning(
                f"Multiple active campaigns found, using {campaigns[0].campaign_id} "
                f"(also active: {campaigns[1].campaign_id})"
            )
        return campaigns[0]

    async def get_active_campaigns(self) -> List[Campaign]:
        return await self.repository.find_active_campaigns(self.clock.now())

    async def resolve(
        self,
        product: ProductPricing,
        seller_default_discount: Optional[Decimal] = None,
        is_referral_visitor: bool = False,
    ) -> Optional[DiscountDecision]:
        campaign = await self.get_active_campaign()
        return self._compute(campaign, product, seller_default_discount, is_referral_visitor)

    async def resolve_many(
        self,
        products: List[ProductPricing],
        seller_default_discount: Optional[Decimal] = None,
        is_referral_visitor: bool = False,
    ) -> List[Optional[DiscountDecision]]:
        """Resolve a listing against a single active-campaign read"""
        campaign = await self.get_active_campaign()
        return [
            self._compute(campaign, product, seller_default_discount, is_referral_visitor)
            for product in products
        ]

    def _compute(
        self,
        campaign: Optional[Campaign],
        product: ProductPricing,
        seller_default_discount: Optional[Decimal],
        is_referral_visitor: bool,
    ) -> Optional[DiscountDecision]:
        return compute_discount(
            campaign,
            product,
            seller_default_discount=seller_default_discount,
            is_referral_visitor=is_referral_visitor,
            default_badge_text=self.default_badge_text,
            default_badge_text_localized=self.default_badge_text_localized,
        )


__all__ = [
    "DEFAULT_BADGE_TEXT",
    "DEFAULT_BADGE_TEXT_LOCALIZED",
    "compute_discount",
    "DiscountResolver",
]
