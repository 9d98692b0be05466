"""
NATS Client for Python Microservices
Provides event-driven communication between marketplace services

This module wraps nats-py with the platform's event envelope.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, TYPE_CHECKING

import nats
from nats.aio.client import Client as NATS
from nats.aio.msg import Msg

if TYPE_CHECKING:
    from core.config_manager import ConfigManager


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event subjects shared across services"""

    # Campaign Events
    CAMPAIGN_CREATED = "campaign.created"
    CAMPAIGN_UPDATED = "campaign.updated"
    CAMPAIGN_DELETED = "campaign.deleted"
    CAMPAIGN_SCHEDULED = "campaign.scheduled"
    CAMPAIGN_ACTIVATED = "campaign.activated"
    CAMPAIGN_PAUSED = "campaign.paused"
    CAMPAIGN_ENDED = "campaign.ended"
    CAMPAIGN_AUTO_ACTIVATED = "campaign.auto_activated"
    CAMPAIGN_AUTO_ENDED = "campaign.auto_ended"

    # Order Events
    ORDER_CREATED = "order.created"
    ORDER_COMPLETED = "order.completed"
    ORDER_CANCELED = "order.canceled"


class ServiceSource(Enum):
    """Publishing service identities"""

    PROMOTION_SERVICE = "promotion_service"
    ORDER_SERVICE = "order_service"
    PRODUCT_SERVICE = "product_service"
    GATEWAY = "api_gateway"


class Event:
    """Event envelope"""

    def __init__(
        self,
        event_type: EventType,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        event = cls.__new__(cls)
        event.id = data.get("id")
        event.type = data.get("type")
        event.source = data.get("source")
        event.subject = data.get("subject")
        event.timestamp = data.get("timestamp")
        event.data = data.get("data", {})
        event.metadata = data.get("metadata", {})
        event.version = data.get("version", "1.0.0")
        return event


EventHandler = Callable[[Event], Awaitable[None]]


class NATSEventBus:
    """NATS event bus on top of nats-py"""

    def __init__(
        self,
        service_name: str,
        config: Optional["ConfigManager"] = None,
    ):
        """
        Initialize NATS Event Bus.

        Args:
            service_name: Name of the service (used as queue group)
            config: Optional ConfigManager instance for service discovery
        """
        from core.config_manager import ConfigManager

        self.service_name = service_name

        if config is None:
            config = ConfigManager(service_name)

        infra = config.infrastructure
        if infra.nats_url:
            self.url = infra.nats_url
        else:
            host, port = config.discover_service(
                service_name="nats_service",
                default_host=infra.nats_host,
                default_port=infra.nats_port,
                env_host_key="NATS_HOST",
                env_port_key="NATS_PORT",
            )
            self.url = f"nats://{host}:{port}"

        self._client: Optional[NATS] = None
        self._subscriptions: List[Any] = []

        logger.info(f"NATS EventBus initialized: {self.url}")

    async def connect(self):
        """Connect to NATS"""
        try:
            self._client = await nats.connect(self.url, name=self.service_name)
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS at {self.url}: {e}")
            raise

    async def publish_event(self, event: Event) -> bool:
        """Publish an event on the subject named by its type"""
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return False

        try:
            data = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()
            await self._client.publish(event.type, data)
            logger.info(f"Published event {event.type} [{event.id}]")
            return True
        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    async def subscribe_to_events(
        self, pattern: str, handler: EventHandler, queue: Optional[str] = None
    ) -> Optional[str]:
        """
        Subscribe to events matching a subject pattern.

        Args:
            pattern: Subject pattern to subscribe to (e.g., "order.completed")
            handler: Async callback receiving the decoded Event
            queue: Queue group; defaults to the service name so replicas share work
        """
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return None

        async def _on_message(msg: Msg) -> None:
            try:
                event = Event.from_dict(json.loads(msg.data.decode()))
            except (ValueError, UnicodeDecodeError) as e:
                logger.warning(f"Dropping undecodable message on {msg.subject}: {e}")
                return
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Handler failed for {msg.subject} [{event.id}]: {e}", exc_info=True)

        subscription = await self._client.subscribe(
            pattern, queue=queue or self.service_name, cb=_on_message
        )
        self._subscriptions.append(subscription)
        logger.info(f"Subscribed to {pattern}")
        return pattern

    async def close(self):
        """Drain subscriptions and close the connection"""
        for subscription in self._subscriptions:
            try:
                await subscription.unsubscribe()
            except Exception as e:
                logger.debug(f"Unsubscribe note: {e}")
        self._subscriptions = []

        if self._client:
            await self._client.drain()
            self._client = None

        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._client is not None and self._client.is_connected


# Convenience function for creating events
def create_event(
    event_type: EventType,
    source: ServiceSource,
    data: Dict[str, Any],
    subject: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
) -> Event:
    """Create an Event instance"""
    return Event(
        event_type=event_type,
        source=source,
        data=data,
        subject=subject,
        metadata=metadata,
    )
