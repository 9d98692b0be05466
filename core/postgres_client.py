"""
PostgreSQL Client Wrapper

Centralized asyncpg pool wrapper used by every repository.
Provides service discovery integration and consistent database access pattern.

Usage:
    from core.postgres_client import PostgresClient

    db = PostgresClient("promotion_service")

    async with db:
        rows = await db.query("SELECT * FROM promotion.campaigns WHERE status = $1", ["active"])
"""

import logging
import os
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import asyncpg

if TYPE_CHECKING:
    from core.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def _rows_affected(status: str) -> int:
    """Parse asyncpg command status such as ``UPDATE 3`` into a row count"""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class PostgresClient:
    """
    PostgreSQL client wrapper with service discovery integration.

    Wraps an asyncpg connection pool and provides:
    - Service discovery for host/port configuration
    - Lazy pool creation on first ``async with``
    - Rows returned as plain dictionaries
    """

    def __init__(
        self,
        service_name: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        config: Optional["ConfigManager"] = None,
    ):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            host: PostgreSQL host (defaults to env/service discovery)
            port: PostgreSQL port (defaults to 5432)
            database: Database name (defaults to 'postgres')
            username: Database username
            password: Database password
            min_size: Minimum pool size
            max_size: Maximum pool size
            config: Service configuration (defaults to global settings)
        """
        from core.config_manager import ConfigManager

        self.service_name = service_name

        config = config or ConfigManager(service_name)
        infra = config.infrastructure
        discovered_host, discovered_port = config.discover_service(
            service_name="postgres_service",
            default_host=infra.postgres_host,
            default_port=infra.postgres_port,
            env_host_key="POSTGRES_HOST",
            env_port_key="POSTGRES_PORT",
        )

        # Apply overrides
        self.host = host or discovered_host
        self.port = port or discovered_port
        self.database = database or os.getenv("POSTGRES_DB", infra.postgres_db)
        self.username = username or os.getenv("POSTGRES_USER", infra.postgres_user)
        self.password = password or os.getenv("POSTGRES_PASSWORD", infra.postgres_password)
        self.min_size = min_size or infra.postgres_pool_min
        self.max_size = max_size or infra.postgres_pool_max

        self._pool: Optional[asyncpg.Pool] = None

        logger.info(f"PostgreSQL client initialized for {service_name}: {self.host}:{self.port}/{self.database}")

    @property
    def pool(self) -> Optional[asyncpg.Pool]:
        """Get underlying asyncpg pool"""
        return self._pool

    async def connect(self) -> None:
        """Create the connection pool if it does not exist yet"""
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.username,
            password=self.password,
            min_size=self.min_size,
            max_size=self.max_size,
        )
        logger.info(f"PostgreSQL pool opened for {self.service_name}")

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit (pool stays open)"""
        return False

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            async with self:
                row = await self.query_row("SELECT 1 AS healthy")
            return row is not None
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        records = await self._pool.fetch(sql, *(params or []))
        return [dict(record) for record in records]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        record = await self._pool.fetchrow(sql, *(params or []))
        return dict(record) if record is not None else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> int:
        """Execute SQL statement and return the number of affected rows"""
        status = await self._pool.execute(sql, *(params or []))
        return _rows_affected(status)

    async def execute_script(self, sql: str) -> None:
        """Execute a multi-statement script (no parameters)"""
        async with self._pool.acquire() as conn:
            await conn.execute(sql)

    async def close(self):
        """Close connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


__all__ = ["PostgresClient"]
