#!/usr/bin/env python3
"""Marketplace platform configuration

Top-level settings object composing every sub-config.
"""
import os
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .promotion_config import PromotionConfig

def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class PlatformConfig:
    """Main platform configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False
    default_host: str = "0.0.0.0"

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    promotion: PromotionConfig = field(default_factory=PromotionConfig)

    @classmethod
    def from_env(cls) -> 'PlatformConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),
            default_host=os.getenv("HOST", "0.0.0.0"),
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            promotion=PromotionConfig.from_env(),
        )
