"""
Unit Tests for Campaign Discount Computation

Covers visitor and product gates, magnitude selection by discount source,
the cap/override rule and minor-unit rounding.
"""

import pytest
from decimal import Decimal

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.promotion.data_contract import (
    CampaignAudienceTag,
    CampaignStatus,
    DiscountSource,
    PromotionTestDataFactory,
)
from microservices.promotion_service.discount_resolver import (
    DEFAULT_BADGE_TEXT,
    DEFAULT_BADGE_TEXT_LOCALIZED,
    compute_discount,
)


def active_campaign(**kwargs):
    kwargs.setdefault("status", CampaignStatus.ACTIVE)
    return PromotionTestDataFactory.make_campaign(**kwargs)


class TestReferenceScenarios:
    """Worked examples of the resolution algorithm"""

    def test_product_permission_capped(self, factory):
        campaign = active_campaign(
            discount_source=DiscountSource.PRODUCT_PERMISSION,
            max_discount_percent=Decimal("15"),
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
        )
        product = factory.make_product(price="100", referral_discount_percent="20")

        decision = compute_discount(campaign, product)

        assert decision is not None
        assert decision.discount_percent == Decimal("15")
        assert decision.discount_amount == Decimal("15.00")
        assert decision.final_price == Decimal("85.00")
        assert decision.campaign_id == campaign.campaign_id
        assert decision.campaign_name == campaign.name

    def test_product_without_permission_gets_nothing(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.ALL_VISITORS])
        product = factory.make_product(price="100", referral_discount_percent="0")

        assert compute_discount(campaign, product) is None

    def test_override_for_referral_visitor(self, factory):
        campaign = active_campaign(
            discount_source=DiscountSource.OVERRIDE,
            max_discount_percent=Decimal("10"),
            use_max_as_override=True,
            only_products_with_permission=False,
            applies_to=[CampaignAudienceTag.INFLUENCER_REFERRALS],
        )
        product = factory.make_product(price="250", referral_discount_percent="0")

        decision = compute_discount(campaign, product, is_referral_visitor=True)

        assert decision.discount_percent == Decimal("10")
        assert decision.discount_amount == Decimal("25.00")
        assert decision.final_price == Decimal("225.00")

    def test_no_campaign_means_no_discount(self, factory):
        product = factory.make_product(price="100", referral_discount_percent="50")

        assert compute_discount(None, product, is_referral_visitor=True) is None
        assert compute_discount(None, product, seller_default_discount=Decimal("30")) is None


class TestVisitorGate:
    """applies_to eligibility"""

    def test_referral_only_campaign_rejects_regular_visitor(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.INFLUENCER_REFERRALS])
        product = factory.make_product(referral_discount_percent="10")

        assert compute_discount(campaign, product, is_referral_visitor=False) is None

    def test_referral_only_campaign_accepts_referral_visitor(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.INFLUENCER_REFERRALS])
        product = factory.make_product(referral_discount_percent="10")

        assert compute_discount(campaign, product, is_referral_visitor=True) is not None

    def test_all_visitors_campaign_accepts_regular_visitor(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.ALL_VISITORS])
        product = factory.make_product(referral_discount_percent="10")

        assert compute_discount(campaign, product, is_referral_visitor=False) is not None

    def test_referral_visitor_passes_even_without_referral_tag(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.ALL_VISITORS])
        product = factory.make_product(referral_discount_percent="10")

        assert compute_discount(campaign, product, is_referral_visitor=True) is not None


class TestProductGate:

    def test_permission_not_required_allows_zero_percent_product(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            only_products_with_permission=False,
            discount_source=DiscountSource.OVERRIDE,
            max_discount_percent=Decimal("12"),
        )
        product = factory.make_product(price="50", referral_discount_percent="0")

        decision = compute_discount(campaign, product)

        assert decision.discount_percent == Decimal("12")
        assert decision.discount_amount == Decimal("6.00")

    def test_permission_not_required_with_product_source_gives_zero_discount(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            only_products_with_permission=False,
        )
        product = factory.make_product(price="80", referral_discount_percent="0")

        decision = compute_discount(campaign, product)

        assert decision.discount_amount == Decimal("0.00")
        assert decision.final_price == Decimal("80.00")


class TestDiscountSource:

    def test_artist_default_uses_seller_percent(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            discount_source=DiscountSource.ARTIST_DEFAULT,
            max_discount_percent=Decimal("30"),
        )
        product = factory.make_product(price="200", referral_discount_percent="5")

        decision = compute_discount(campaign, product, seller_default_discount=Decimal("20"))

        assert decision.discount_percent == Decimal("20")
        assert decision.discount_amount == Decimal("40.00")

    def test_artist_default_falls_back_to_product_percent(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            discount_source=DiscountSource.ARTIST_DEFAULT,
            max_discount_percent=Decimal("30"),
        )
        product = factory.make_product(price="200", referral_discount_percent="5")

        decision = compute_discount(campaign, product)

        assert decision.discount_percent == Decimal("5")

    def test_seller_percent_ignored_for_product_permission_source(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            max_discount_percent=Decimal("30"),
        )
        product = factory.make_product(price="200", referral_discount_percent="5")

        decision = compute_discount(campaign, product, seller_default_discount=Decimal("25"))

        assert decision.discount_percent == Decimal("5")


class TestCapAndOverride:

    @pytest.mark.parametrize(
        "product_percent,cap,expected",
        [
            ("5", "15", "5"),
            ("15", "15", "15"),
            ("40", "15", "15"),
            ("100", "50", "50"),
            ("7.5", "0", "0"),
        ],
    )
    def test_percent_is_min_of_source_and_cap(self, factory, product_percent, cap, expected):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            max_discount_percent=Decimal(cap),
        )
        product = factory.make_product(price="100", referral_discount_percent=product_percent)

        decision = compute_discount(campaign, product)

        assert decision.discount_percent == Decimal(expected)

    def test_override_flag_skips_cap(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            max_discount_percent=Decimal("10"),
            use_max_as_override=True,
        )
        product = factory.make_product(price="100", referral_discount_percent="35")

        decision = compute_discount(campaign, product)

        assert decision.discount_percent == Decimal("35")

    def test_override_source_with_override_flag_uses_max(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            discount_source=DiscountSource.OVERRIDE,
            max_discount_percent=Decimal("22"),
            use_max_as_override=True,
        )
        product = factory.make_product(price="100", referral_discount_percent="3")

        assert compute_discount(campaign, product).discount_percent == Decimal("22")


class TestAmounts:

    @pytest.mark.parametrize(
        "price,percent",
        [
            ("99.99", "15"),
            ("0.05", "10"),
            ("1234.57", "12.5"),
            ("0", "15"),
            ("19.99", "33"),
        ],
    )
    def test_amount_plus_final_price_equals_price(self, factory, price, percent):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            max_discount_percent=Decimal("50"),
        )
        product = factory.make_product(price=price, referral_discount_percent=percent)

        decision = compute_discount(campaign, product)

        assert decision.discount_amount + decision.final_price == Decimal(price)

    def test_half_cent_rounds_up(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            max_discount_percent=Decimal("50"),
        )
        # 10% of 0.25 is 0.025
        product = factory.make_product(price="0.25", referral_discount_percent="10")

        decision = compute_discount(campaign, product)

        assert decision.discount_amount == Decimal("0.03")
        assert decision.final_price == Decimal("0.22")


class TestBadgeText:

    def test_defaults_when_campaign_has_none(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.ALL_VISITORS])
        product = factory.make_product(referral_discount_percent="10")

        decision = compute_discount(campaign, product)

        assert decision.badge_text == DEFAULT_BADGE_TEXT
        assert decision.badge_text_localized == DEFAULT_BADGE_TEXT_LOCALIZED

    def test_campaign_badge_wins(self, factory):
        campaign = active_campaign(
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
            badge_text="Spring sale",
            badge_text_localized="გაზაფხულის ფასდაკლება",
        )
        product = factory.make_product(referral_discount_percent="10")

        decision = compute_discount(campaign, product)

        assert decision.badge_text == "Spring sale"
        assert decision.badge_text_localized == "გაზაფხულის ფასდაკლება"

    def test_configured_defaults_are_used(self, factory):
        campaign = active_campaign(applies_to=[CampaignAudienceTag.ALL_VISITORS])
        product = factory.make_product(referral_discount_percent="10")

        decision = compute_discount(
            campaign,
            product,
            default_badge_text="Promo",
            default_badge_text_localized="პრომო",
        )

        assert decision.badge_text == "Promo"
        assert decision.badge_text_localized == "პრომო"
