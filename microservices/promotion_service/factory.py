"""
Promotion Service Factory

Factory for creating promotion service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config_manager import ConfigManager
from core.nats_client import NATSEventBus

from .campaign_repository import CampaignRepository
from .campaign_service import CampaignService
from .clock import SystemClock
from .events.handlers import PromotionEventHandler
from .scheduler import CampaignSweepScheduler

logger = logging.getLogger(__name__)


class PromotionServiceFactory:
    """Factory for creating promotion service components"""

    def __init__(self, config: Optional[ConfigManager] = None):
        self.config = config or ConfigManager("promotion_service")
        self._repository: Optional[CampaignRepository] = None
        self._service: Optional[CampaignService] = None
        self._nats_client: Optional[NATSEventBus] = None
        self._event_handler: Optional[PromotionEventHandler] = None
        self._scheduler: Optional[CampaignSweepScheduler] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Promotion Service components...")

        # Initialize repository
        self._repository = CampaignRepository(self.config)
        await self._repository.initialize()

        # Initialize NATS client
        if self.config.infrastructure.nats_enabled:
            try:
                self._nats_client = NATSEventBus(
                    service_name="promotion_service",
                    config=self.config,
                )
                await self._nats_client.connect()
                logger.info("NATS client connected")
            except Exception as e:
                logger.warning(f"NATS client initialization failed: {e}")
                self._nats_client = None
        else:
            logger.info("NATS disabled, events will not be published")

        # Initialize main service
        promotion = self.config.promotion
        self._service = CampaignService(
            repository=self._repository,
            event_bus=self._nats_client,
            clock=SystemClock(),
            default_badge_text=promotion.default_badge_text,
            default_badge_text_localized=promotion.default_badge_text_localized,
        )

        # Initialize event handler
        self._event_handler = PromotionEventHandler(campaign_service=self._service)
        if self._nats_client:
            for pattern in self._event_handler.subscriptions():
                await self._nats_client.subscribe_to_events(pattern, self._event_handler.on_event)

        # Sweep scheduler
        self._scheduler = CampaignSweepScheduler(
            self._service, interval_seconds=promotion.sweep_interval_seconds
        )
        if promotion.sweep_enabled:
            try:
                self._scheduler.start()
            except Exception as e:
                logger.warning(f"Failed to start campaign sweep scheduler: {e}")
        else:
            logger.info("Campaign sweep scheduler disabled")

        logger.info("Promotion Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Promotion Service components...")

        if self._scheduler:
            self._scheduler.stop()

        if self._nats_client:
            await self._nats_client.close()

        if self._repository:
            await self._repository.close()

        logger.info("Promotion Service components closed")

    @property
    def repository(self) -> CampaignRepository:
        """Get campaign repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> CampaignService:
        """Get campaign service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def nats_client(self) -> Optional[NATSEventBus]:
        """Get NATS client"""
        return self._nats_client

    @property
    def event_handler(self) -> PromotionEventHandler:
        """Get event handler"""
        if not self._event_handler:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._event_handler

    @property
    def scheduler(self) -> Optional[CampaignSweepScheduler]:
        return self._scheduler


# Global factory instance
_factory: Optional[PromotionServiceFactory] = None


async def get_factory() -> PromotionServiceFactory:
    """Get or create factory instance"""
    global _factory
    if _factory is None:
        _factory = PromotionServiceFactory()
        await _factory.initialize()
    return _factory


async def close_factory() -> None:
    """Close factory instance"""
    global _factory
    if _factory:
        await _factory.close()
        _factory = None


__all__ = [
    "PromotionServiceFactory",
    "get_factory",
    "close_factory",
]
