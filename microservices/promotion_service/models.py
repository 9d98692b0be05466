"""
Promotion Service Data Models

Canonical data structures for campaigns, discount decisions and the
request/response bodies of the HTTP API.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class CampaignAudienceTag(str, Enum):
    """Visitor groups a campaign applies to"""
    INFLUENCER_REFERRALS = "influencer_referrals"
    ALL_VISITORS = "all_visitors"


class DiscountSource(str, Enum):
    """Which input determines the discount magnitude"""
    PRODUCT_PERMISSION = "product_permission"  # product's referral discount percent
    ARTIST_DEFAULT = "artist_default"  # seller's default referral discount
    OVERRIDE = "override"  # campaign's max_discount_percent


MAX_CAMPAIGN_DISCOUNT_PERCENT = Decimal("50")


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = {
        "from_attributes": True,
    }


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _dedupe_tags(value: List[CampaignAudienceTag]) -> List[CampaignAudienceTag]:
    seen: List[CampaignAudienceTag] = []
    for tag in value:
        if tag not in seen:
            seen.append(tag)
    return seen


# =============================================================================
# CAMPAIGN MODELS
# =============================================================================

class Campaign(BaseContract):
    """Promotional campaign"""
    campaign_id: str
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    status: CampaignStatus = Field(default=CampaignStatus.DRAFT)

    # Window
    start_date: datetime
    end_date: datetime

    # Eligibility
    applies_to: List[CampaignAudienceTag] = Field(
        default_factory=lambda: [CampaignAudienceTag.INFLUENCER_REFERRALS], min_length=1
    )
    only_products_with_permission: bool = True

    # Magnitude
    discount_source: DiscountSource = DiscountSource.PRODUCT_PERMISSION
    max_discount_percent: Decimal = Field(default=Decimal("15"), ge=0, le=MAX_CAMPAIGN_DISCOUNT_PERCENT)
    use_max_as_override: bool = False

    # Buyer-facing labels
    badge_text: Optional[str] = Field(None, max_length=100)
    badge_text_localized: Optional[str] = Field(None, max_length=100)

    # Analytics counters
    total_orders: int = Field(default=0, ge=0)
    total_revenue: Decimal = Field(default=Decimal("0"))
    total_discount: Decimal = Field(default=Decimal("0"))

    # Audit
    created_by: str
    updated_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def ensure_timezone(cls, v):
        return _as_utc(v)

    @field_validator("applies_to")
    @classmethod
    def dedupe_applies_to(cls, v):
        return _dedupe_tags(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self

    @property
    def applies_to_all_visitors(self) -> bool:
        return CampaignAudienceTag.ALL_VISITORS in self.applies_to

    def is_within_window(self, now: datetime) -> bool:
        """Whether ``now`` falls inside [start_date, end_date]"""
        return self.start_date <= now <= self.end_date

    def has_expired(self, now: datetime) -> bool:
        return self.end_date < now


# =============================================================================
# DISCOUNT MODELS
# =============================================================================

class ProductPricing(BaseContract):
    """Price and promotion permission of a single product"""
    product_id: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    referral_discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class DiscountDecision(BaseContract):
    """Outcome of resolving a campaign discount for one product"""
    discount_percent: Decimal
    discount_amount: Decimal
    final_price: Decimal
    campaign_id: str
    campaign_name: str
    badge_text: str
    badge_text_localized: str


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CampaignCreateRequest(BaseContract):
    """Campaign creation request"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: datetime
    end_date: datetime
    applies_to: List[CampaignAudienceTag] = Field(
        default_factory=lambda: [CampaignAudienceTag.INFLUENCER_REFERRALS]
    )
    only_products_with_permission: bool = True
    discount_source: DiscountSource = DiscountSource.PRODUCT_PERMISSION
    max_discount_percent: Decimal = Field(default=Decimal("15"), ge=0, le=MAX_CAMPAIGN_DISCOUNT_PERCENT)
    use_max_as_override: bool = False
    badge_text: Optional[str] = Field(None, max_length=100)
    badge_text_localized: Optional[str] = Field(None, max_length=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def ensure_timezone(cls, v):
        return _as_utc(v)


class CampaignUpdateRequest(BaseContract):
    """Campaign update request; status changes go through lifecycle commands"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    applies_to: Optional[List[CampaignAudienceTag]] = None
    only_products_with_permission: Optional[bool] = None
    discount_source: Optional[DiscountSource] = None
    max_discount_percent: Optional[Decimal] = Field(None, ge=0, le=MAX_CAMPAIGN_DISCOUNT_PERCENT)
    use_max_as_override: Optional[bool] = None
    badge_text: Optional[str] = Field(None, max_length=100)
    badge_text_localized: Optional[str] = Field(None, max_length=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def ensure_timezone(cls, v):
        return _as_utc(v)


class DiscountCalculationRequest(BaseContract):
    """Discount preview for a single product"""
    price: Decimal = Field(..., ge=0, decimal_places=2)
    referral_discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    seller_default_discount: Optional[Decimal] = Field(None, ge=0, le=100)
    is_referral_visitor: bool = False


class BatchDiscountRequest(BaseContract):
    """Discounts for a product listing resolved against one campaign read"""
    products: List[ProductPricing] = Field(..., min_length=1, max_length=200)
    seller_default_discount: Optional[Decimal] = Field(None, ge=0, le=100)
    is_referral_visitor: bool = False


class OrderRecordRequest(BaseContract):
    """Completed order attributed to a campaign"""
    order_amount: Decimal = Field(..., ge=0)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class CampaignResponse(BaseContract):
    """Campaign response"""
    campaign: Campaign
    message: str = "Success"


class CampaignListResponse(BaseContract):
    """Campaign list response"""
    campaigns: List[Campaign]
    total: int
    limit: int
    offset: int
    has_more: bool


class ActiveCampaignResponse(BaseContract):
    """Currently active campaign, if any"""
    campaign: Optional[Campaign] = None


class DiscountResponse(BaseContract):
    """Single discount preview; ``discount`` is null when none applies"""
    discount: Optional[DiscountDecision] = None


class ProductDiscountResult(BaseContract):
    product_id: Optional[str] = None
    discount: Optional[DiscountDecision] = None


class BatchDiscountResponse(BaseContract):
    discounts: List[ProductDiscountResult]


class SweepResponse(BaseContract):
    """Result of a lifecycle sweep"""
    sweep: str
    transitioned: int
    ran_at: datetime


class OrderRecordResponse(BaseContract):
    recorded: bool


class CampaignAnalytics(BaseContract):
    """Cumulative order figures for a campaign"""
    campaign_id: str
    campaign_name: str
    status: CampaignStatus
    total_orders: int
    total_revenue: Decimal
    total_discount: Decimal
    average_order_value: Decimal
    discount_rate_percent: Decimal


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


__all__ = [
    "CampaignStatus",
    "CampaignAudienceTag",
    "DiscountSource",
    "MAX_CAMPAIGN_DISCOUNT_PERCENT",
    "Campaign",
    "ProductPricing",
    "DiscountDecision",
    "CampaignCreateRequest",
    "CampaignUpdateRequest",
    "DiscountCalculationRequest",
    "BatchDiscountRequest",
    "OrderRecordRequest",
    "CampaignResponse",
    "CampaignListResponse",
    "ActiveCampaignResponse",
    "DiscountResponse",
    "ProductDiscountResult",
    "BatchDiscountResponse",
    "SweepResponse",
    "OrderRecordResponse",
    "CampaignAnalytics",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
]
