#!/usr/bin/env python3
"""Promotion service settings

Sweep cadence and buyer-facing defaults for campaign pricing.
"""
import os
from dataclasses import dataclass

def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class PromotionConfig:
    """Promotion service settings"""

    service_port: int = 8252

    # Sweeps must run more often than the shortest campaign window
    sweep_enabled: bool = True
    sweep_interval_seconds: int = 60

    default_badge_text: str = "Campaign price"
    default_badge_text_localized: str = "აქციის ფასი"

    @classmethod
    def from_env(cls) -> 'PromotionConfig':
        """Load promotion settings from environment variables"""
        return cls(
            service_port=_int(os.getenv("SERVICE_PORT", "8252"), 8252),
            sweep_enabled=_bool(os.getenv("PROMOTION_SWEEP_ENABLED", "true")),
            sweep_interval_seconds=max(1, _int(os.getenv("PROMOTION_SWEEP_INTERVAL_SECONDS", "60"), 60)),
            default_badge_text=os.getenv("PROMOTION_DEFAULT_BADGE_TEXT", "Campaign price"),
            default_badge_text_localized=os.getenv(
                "PROMOTION_DEFAULT_BADGE_TEXT_LOCALIZED", "აქციის ფასი"
            ),
        )
