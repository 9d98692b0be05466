"""
Configuration Manager

Per-service entry point to the platform configuration. Services take a
ConfigManager in their constructors so tests can hand in their own.

Usage:
    from core.config_manager import ConfigManager

    config = ConfigManager("promotion_service")
    host, port = config.discover_service(
        service_name="postgres_service",
        default_host="localhost",
        default_port=5432,
        env_host_key="POSTGRES_HOST",
        env_port_key="POSTGRES_PORT",
    )
"""

import logging
import os
from typing import Optional, Tuple

from core.config import PlatformConfig, get_settings

logger = logging.getLogger(__name__)


class ConfigManager:
    """Configuration access for a single microservice"""

    def __init__(self, service_name: str, settings: Optional[PlatformConfig] = None):
        self.service_name = service_name
        self.settings = settings or get_settings()

    @property
    def infrastructure(self):
        return self.settings.infrastructure

    @property
    def promotion(self):
        return self.settings.promotion

    @property
    def logging(self):
        return self.settings.logging

    def discover_service(
        self,
        service_name: str,
        default_host: str = "localhost",
        default_port: int = 80,
        env_host_key: Optional[str] = None,
        env_port_key: Optional[str] = None,
    ) -> Tuple[str, int]:
        """
        Resolve host and port for a dependency.

        Environment variables win over defaults; the service-specific
        ``<SERVICE>_HOST``/``<SERVICE>_PORT`` keys are used when no explicit
        keys are given.
        """
        prefix = service_name.upper()
        host_key = env_host_key or f"{prefix}_HOST"
        port_key = env_port_key or f"{prefix}_PORT"

        host = os.getenv(host_key) or default_host
        raw_port = os.getenv(port_key)
        try:
            port = int(raw_port) if raw_port else default_port
        except ValueError:
            logger.warning(f"Invalid port in {port_key}={raw_port!r}, using {default_port}")
            port = default_port

        logger.debug(f"[{self.service_name}] {service_name} resolved to {host}:{port}")
        return host, port


__all__ = ["ConfigManager"]
