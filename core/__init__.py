#!/usr/bin/env python3
"""
Core Module for Marketplace Microservices

Shared infrastructure used by every service in the platform.

COMPONENTS:
    - config/: Modular dataclass configuration loaded from the environment
    - config_manager.py: Per-service configuration entry point
    - postgres_client.py: asyncpg pool wrapper used by repositories
    - nats_client.py: NATS event bus for event-driven architecture

USAGE:
    from core.config_manager import ConfigManager

    # Initialize configuration for a service
    config = ConfigManager("promotion_service")
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]

__version__ = "2.0.0"
