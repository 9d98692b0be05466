"""
Component Tests for CampaignService

CRUD, validation, active-campaign lookup, discount resolution and analytics
through the service facade with mocked dependencies.
"""

import logging
import pytest
from datetime import timedelta
from decimal import Decimal

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.promotion.data_contract import (
    BASE_TIME,
    BatchDiscountRequest,
    CampaignAudienceTag,
    CampaignStatus,
    CampaignUpdateRequest,
    DiscountCalculationRequest,
    DiscountSource,
)
from microservices.promotion_service.identifiers import CAMPAIGN_ID_PATTERN
from microservices.promotion_service.protocols import (
    CampaignNotFoundError,
    CampaignValidationError,
    InvalidCampaignIdError,
    InvalidCampaignStateError,
)


class TestCreateCampaign:

    @pytest.mark.asyncio
    async def test_create_starts_in_draft(self, service, factory, mock_event_bus, assertions):
        request = factory.make_create_request(name="Spring sale")

        campaign = await service.create_campaign(request, created_by="usr_admin")

        assert CAMPAIGN_ID_PATTERN.match(campaign.campaign_id)
        assert campaign.status == CampaignStatus.DRAFT
        assert campaign.created_by == "usr_admin"
        assert campaign.created_at == BASE_TIME
        assert campaign.applies_to == [CampaignAudienceTag.INFLUENCER_REFERRALS]
        assertions.assert_event_published(
            mock_event_bus.published_events,
            "campaign.created",
            campaign_id=campaign.campaign_id,
            name="Spring sale",
        )

    @pytest.mark.asyncio
    async def test_create_rejects_inverted_window(self, service, factory, mock_repository):
        request = factory.make_create_request(
            start_date=BASE_TIME + timedelta(days=2),
            end_date=BASE_TIME + timedelta(days=1),
        )

        with pytest.raises(CampaignValidationError) as exc_info:
            await service.create_campaign(request, created_by="usr_admin")

        assert exc_info.value.field == "end_date"
        assert mock_repository.campaigns == {}

    @pytest.mark.asyncio
    async def test_create_rejects_empty_audience(self, service, factory):
        request = factory.make_create_request(applies_to=[])

        with pytest.raises(CampaignValidationError) as exc_info:
            await service.create_campaign(request, created_by="usr_admin")

        assert exc_info.value.field == "applies_to"

    @pytest.mark.asyncio
    async def test_create_without_event_bus(self, mock_repository, clock, factory):
        from microservices.promotion_service.campaign_service import CampaignService

        service = CampaignService(repository=mock_repository, clock=clock)
        campaign = await service.create_campaign(factory.make_create_request(), created_by="usr_admin")

        assert campaign.campaign_id in mock_repository.campaigns


class TestReadCampaigns:

    @pytest.mark.asyncio
    async def test_get_unknown(self, service, factory):
        with pytest.raises(CampaignNotFoundError):
            await service.get_campaign(factory.make_campaign_id())

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, service):
        with pytest.raises(InvalidCampaignIdError):
            await service.get_campaign("cmp_123")

    @pytest.mark.asyncio
    async def test_list_newest_first_with_filter(self, service, add_campaign):
        older = add_campaign(status=CampaignStatus.ACTIVE, created_at=BASE_TIME - timedelta(days=3))
        newer = add_campaign(status=CampaignStatus.DRAFT, created_at=BASE_TIME - timedelta(days=1))
        add_campaign(status=CampaignStatus.ENDED, created_at=BASE_TIME - timedelta(days=2))

        campaigns, total = await service.list_campaigns()
        assert total == 3
        assert campaigns[0].campaign_id == newer.campaign_id

        campaigns, total = await service.list_campaigns(status=[CampaignStatus.ACTIVE])
        assert total == 1
        assert campaigns[0].campaign_id == older.campaign_id

    @pytest.mark.asyncio
    async def test_list_page_size_is_bounded(self, service, add_campaign):
        for _ in range(3):
            add_campaign()

        campaigns, total = await service.list_campaigns(limit=1000, offset=-5)

        assert total == 3
        assert len(campaigns) == 3


class TestUpdateCampaign:

    @pytest.mark.asyncio
    async def test_partial_update(self, service, add_campaign, mock_event_bus):
        campaign = add_campaign(max_discount_percent=Decimal("15"))

        updated = await service.update_campaign(
            campaign.campaign_id,
            CampaignUpdateRequest(max_discount_percent=Decimal("20"), badge_text="Sale"),
            updated_by="usr_editor",
        )

        assert updated.max_discount_percent == Decimal("20")
        assert updated.badge_text == "Sale"
        assert updated.name == campaign.name
        assert updated.updated_by == "usr_editor"
        event = mock_event_bus.get_events_by_type("campaign.updated")[0]
        assert sorted(event["data"]["changed_fields"]) == ["badge_text", "max_discount_percent"]

    @pytest.mark.asyncio
    async def test_update_validates_merged_window(self, service, add_campaign):
        campaign = add_campaign(
            start_date=BASE_TIME,
            end_date=BASE_TIME + timedelta(days=1),
        )

        with pytest.raises(CampaignValidationError):
            await service.update_campaign(
                campaign.campaign_id,
                CampaignUpdateRequest(start_date=BASE_TIME + timedelta(days=2)),
            )

    @pytest.mark.asyncio
    async def test_update_rejects_empty_audience(self, service, add_campaign):
        campaign = add_campaign()

        with pytest.raises(CampaignValidationError):
            await service.update_campaign(campaign.campaign_id, CampaignUpdateRequest(applies_to=[]))

    @pytest.mark.asyncio
    async def test_ended_campaign_is_read_only(self, service, add_campaign):
        campaign = add_campaign(status=CampaignStatus.ENDED)

        with pytest.raises(InvalidCampaignStateError):
            await service.update_campaign(campaign.campaign_id, CampaignUpdateRequest(name="Renamed"))

    @pytest.mark.asyncio
    async def test_no_op_update_publishes_nothing(self, service, add_campaign, mock_event_bus):
        campaign = add_campaign()

        result = await service.update_campaign(
            campaign.campaign_id, CampaignUpdateRequest(name=campaign.name)
        )

        assert result.campaign_id == campaign.campaign_id
        assert mock_event_bus.get_events_by_type("campaign.updated") == []


class TestDeleteCampaign:

    @pytest.mark.asyncio
    async def test_delete(self, service, add_campaign, mock_repository, mock_event_bus):
        campaign = add_campaign(status=CampaignStatus.ACTIVE)

        assert await service.delete_campaign(campaign.campaign_id, deleted_by="usr_admin")
        assert campaign.campaign_id not in mock_repository.campaigns
        assert mock_event_bus.get_events_by_type("campaign.deleted")

    @pytest.mark.asyncio
    async def test_delete_unknown(self, service, factory):
        with pytest.raises(CampaignNotFoundError):
            await service.delete_campaign(factory.make_campaign_id())


class TestActiveCampaign:

    @pytest.mark.asyncio
    async def test_no_active_campaign(self, service, add_campaign):
        add_campaign(status=CampaignStatus.DRAFT)
        add_campaign(status=CampaignStatus.PAUSED)

        assert await service.get_active_campaign() is None
        assert await service.get_active_campaigns() == []

    @pytest.mark.asyncio
    async def test_active_campaign_within_window(self, service, add_campaign, clock):
        campaign = add_campaign(
            status=CampaignStatus.DRAFT,
            start_date=BASE_TIME - timedelta(hours=1),
            end_date=BASE_TIME + timedelta(hours=1),
        )
        await service.activate_campaign(campaign.campaign_id)

        for offset in (timedelta(hours=-1), timedelta(0), timedelta(hours=1)):
            clock.set(BASE_TIME + offset)
            active = await service.get_active_campaign()
            assert active.campaign_id == campaign.campaign_id

        clock.set(BASE_TIME + timedelta(hours=1, seconds=1))
        assert await service.get_active_campaign() is None

    @pytest.mark.asyncio
    async def test_overlapping_campaigns_latest_start_wins(self, service, add_campaign, caplog):
        add_campaign(status=CampaignStatus.ACTIVE, start_date=BASE_TIME - timedelta(days=3))
        latest = add_campaign(status=CampaignStatus.ACTIVE, start_date=BASE_TIME - timedelta(hours=1))

        with caplog.at_level(logging.WARNING):
            active = await service.get_active_campaign()

        assert active.campaign_id == latest.campaign_id
        assert "Multiple active campaigns" in caplog.text
        assert len(await service.get_active_campaigns()) == 2


class TestCalculateDiscount:

    @pytest.mark.asyncio
    async def test_calculate_discount(self, service, add_campaign):
        campaign = add_campaign(
            status=CampaignStatus.ACTIVE,
            applies_to=[CampaignAudienceTag.ALL_VISITORS],
        )

        decision = await service.calculate_discount(
            DiscountCalculationRequest(price=Decimal("100"), referral_discount_percent=Decimal("20"))
        )

        assert decision.campaign_id == campaign.campaign_id
        assert decision.final_price == Decimal("85.00")

    @pytest.mark.asyncio
    async def test_no_active_campaign_gives_none(self, service, add_campaign):
        add_campaign(status=CampaignStatus.SCHEDULED, applies_to=[CampaignAudienceTag.ALL_VISITORS])

        decision = await service.calculate_discount(
            DiscountCalculationRequest(
                price=Decimal("100"),
                referral_discount_percent=Decimal("20"),
                is_referral_visitor=True,
            )
        )

        assert decision is None

    @pytest.mark.asyncio
    async def test_batch_uses_one_campaign_read(self, service, add_campaign, mock_repository, factory):
        add_campaign(
            status=CampaignStatus.ACTIVE,
            discount_source=DiscountSource.ARTIST_DEFAULT,
            max_discount_percent=Decimal("25"),
        )
        reads = {"n": 0}
        original = mock_repository.find_active_campaigns

        async def counting(now, limit=None):
            reads["n"] += 1
            return await original(now, limit)

        mock_repository.find_active_campaigns = counting

        products = [
            factory.make_product(price="100", referral_discount_percent="10", product_id="p1"),
            factory.make_product(price="40", referral_discount_percent="0", product_id="p2"),
            factory.make_product(price="60", referral_discount_percent="30", product_id="p3"),
        ]
        results = await service.calculate_discounts(
            BatchDiscountRequest(
                products=products,
                seller_default_discount=Decimal("20"),
                is_referral_visitor=True,
            )
        )

        assert reads["n"] == 1
        assert [r.product_id for r in results] == ["p1", "p2", "p3"]
        assert results[0].discount.discount_amount == Decimal("20.00")
        assert results[1].discount is None
        assert results[2].discount.discount_amount == Decimal("12.00")


class TestAnalytics:

    @pytest.mark.asyncio
    async def test_record_orders_accumulate(self, service, add_campaign):
        campaign = add_campaign(status=CampaignStatus.ACTIVE)

        assert await service.record_order(campaign.campaign_id, Decimal("85"), Decimal("15"))
        assert await service.record_order(campaign.campaign_id, Decimal("115"), Decimal("25"))

        analytics = await service.get_campaign_analytics(campaign.campaign_id)
        assert analytics.total_orders == 2
        assert analytics.total_revenue == Decimal("200.00")
        assert analytics.total_discount == Decimal("40.00")
        assert analytics.average_order_value == Decimal("100.00")
        # 40 of 240 pre-discount
        assert analytics.discount_rate_percent == Decimal("16.67")

    @pytest.mark.asyncio
    async def test_record_order_for_deleted_campaign_is_swallowed(self, service, factory, caplog):
        with caplog.at_level(logging.WARNING):
            recorded = await service.record_order(
                factory.make_campaign_id(), Decimal("10"), Decimal("1")
            )

        assert recorded is False
        assert "Campaign analytics not recorded" in caplog.text

    @pytest.mark.asyncio
    async def test_record_order_with_malformed_id_is_swallowed(self, service, mock_repository):
        mock_repository.fail_with = AssertionError("store touched")

        assert await service.record_order("bogus", Decimal("10"), Decimal("1")) is False

    @pytest.mark.asyncio
    async def test_record_order_on_ended_campaign(self, service, add_campaign):
        campaign = add_campaign(status=CampaignStatus.ENDED)

        assert await service.record_order(campaign.campaign_id, Decimal("10"), Decimal("0"))

    @pytest.mark.asyncio
    async def test_analytics_without_orders(self, service, add_campaign):
        campaign = add_campaign()

        analytics = await service.get_campaign_analytics(campaign.campaign_id)

        assert analytics.total_orders == 0
        assert analytics.average_order_value == Decimal("0")
        assert analytics.discount_rate_percent == Decimal("0")

    @pytest.mark.asyncio
    async def test_analytics_unknown_campaign(self, service, factory):
        with pytest.raises(CampaignNotFoundError):
            await service.get_campaign_analytics(factory.make_campaign_id())
