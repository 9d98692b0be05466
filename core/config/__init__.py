#!/usr/bin/env python3
"""Modular configuration system for the marketplace platform

Configuration hierarchy:
- infra_config: Infrastructure services (PostgreSQL, NATS)
- promotion_config: Campaign sweep cadence and pricing defaults
- logging_config: Logging configuration
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .promotion_config import PromotionConfig
from .platform_config import PlatformConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = PlatformConfig.from_env()

def get_settings() -> PlatformConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> PlatformConfig:
    """Reload settings from environment"""
    global settings
    settings = PlatformConfig.from_env()
    return settings

__all__ = [
    'PlatformConfig',
    'get_settings',
    'reload_settings',
    'settings',
    'LoggingConfig',
    'InfraConfig',
    'PromotionConfig',
]
