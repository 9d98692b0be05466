"""
Campaign identifiers

Campaign ids are ``cmp_`` followed by 16 lowercase hex characters.
"""

import re
import uuid

from .protocols import InvalidCampaignIdError

CAMPAIGN_ID_PREFIX = "cmp_"
CAMPAIGN_ID_PATTERN = re.compile(r"^cmp_[0-9a-f]{16}$")


def new_campaign_id() -> str:
    return f"{CAMPAIGN_ID_PREFIX}{uuid.uuid4().hex[:16]}"


def validate_campaign_id(campaign_id: str) -> str:
    """Reject malformed identifiers before they reach the store"""
    if not isinstance(campaign_id, str) or not CAMPAIGN_ID_PATTERN.match(campaign_id):
        raise InvalidCampaignIdError(f"Invalid campaign id: {campaign_id!r}")
    return campaign_id


__all__ = [
    "CAMPAIGN_ID_PREFIX",
    "CAMPAIGN_ID_PATTERN",
    "new_campaign_id",
    "validate_campaign_id",
]
