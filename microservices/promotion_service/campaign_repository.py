"""
Promotion Service Data Repository

Data access layer - PostgreSQL (Async)
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from core.config_manager import ConfigManager
from core.postgres_client import PostgresClient
from .models import (
    Campaign,
    CampaignAudienceTag,
    CampaignStatus,
    DiscountSource,
)

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# Columns a caller may change through update_campaign
UPDATABLE_COLUMNS = {
    "name",
    "description",
    "start_date",
    "end_date",
    "applies_to",
    "only_products_with_permission",
    "discount_source",
    "max_discount_percent",
    "use_max_as_override",
    "badge_text",
    "badge_text_localized",
    "updated_by",
}


def _to_db_value(value: Any) -> Any:
    if isinstance(value, list):
        return [v.value if hasattr(v, "value") else v for v in value]
    if hasattr(value, "value"):  # Enum
        return value.value
    return value


class CampaignRepository:
    """Campaign data repository - PostgreSQL (Async)"""

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        db: Optional[PostgresClient] = None,
    ):
        self.config = config or ConfigManager("promotion_service")
        self.db = db or PostgresClient(service_name="promotion_service", config=self.config)
        self.schema = "promotion"
        self.campaigns_table = "campaigns"

    async def initialize(self):
        """Open the pool and apply schema migrations"""
        async with self.db:
            for migration in sorted(MIGRATIONS_DIR.glob("*.sql")):
                await self.db.execute_script(migration.read_text(encoding="utf-8"))
                logger.debug(f"Applied migration {migration.name}")
        logger.info("Campaign repository initialized with PostgreSQL")

    async def close(self):
        """Close database connection"""
        await self.db.close()
        logger.info("Campaign repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        return await self.db.health_check()

    # ====================
    # Campaign CRUD
    # ====================

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Insert a campaign"""
        try:
            query = f'''
                INSERT INTO {self.schema}.{self.campaigns_table} (
                    campaign_id, name, description, status,
                    start_date, end_date, applies_to,
                    only_products_with_permission, discount_source,
                    max_discount_percent, use_max_as_override,
                    badge_text, badge_text_localized,
                    total_orders, total_revenue, total_discount,
                    created_by, updated_by, created_at, updated_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10,
                    $11, $12, $13, $14, $15, $16, $17, $18, $19, $20
                )
                RETURNING *
            '''

            params = [
                campaign.campaign_id,
                campaign.name,
                campaign.description,
                campaign.status.value,
                campaign.start_date,
                campaign.end_date,
                _to_db_value(campaign.applies_to),
                campaign.only_products_with_permission,
                campaign.discount_source.value,
                campaign.max_discount_percent,
                campaign.use_max_as_override,
                campaign.badge_text,
                campaign.badge_text_localized,
                campaign.total_orders,
                campaign.total_revenue,
                campaign.total_discount,
                campaign.created_by,
                campaign.updated_by,
                campaign.created_at,
                campaign.updated_at,
            ]

            async with self.db:
                row = await self.db.query_row(query, params=params)

            return self._row_to_campaign(row) if row else campaign

        except Exception as e:
            logger.error(f"Error saving campaign: {e}", exc_info=True)
            raise

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE campaign_id = $1
            '''

            async with self.db:
                row = await self.db.query_row(query, params=[campaign_id])

            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise

    async def list_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns with optional status filter, newest first"""
        try:
            conditions = ["TRUE"]
            params: List[Any] = []

            if status:
                params.append([s.value for s in status])
                conditions.append(f"status = ANY(${len(params)})")

            where_clause = " AND ".join(conditions)

            count_query = f'''
                SELECT COUNT(*) AS total FROM {self.schema}.{self.campaigns_table}
                WHERE {where_clause}
            '''
            list_query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
            '''

            async with self.db:
                count_row = await self.db.query_row(count_query, params=params)
                rows = await self.db.query(list_query, params=params + [limit, offset])

            total = count_row.get("total", 0) if count_row else 0
            return [self._row_to_campaign(r) for r in rows], total

        except Exception as e:
            logger.error(f"Error listing campaigns: {e}")
            raise

    async def update_campaign(
        self, campaign_id: str, updates: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Update campaign fields"""
        try:
            unknown = set(updates) - UPDATABLE_COLUMNS
            if unknown:
                raise ValueError(f"Columns not updatable: {sorted(unknown)}")

            if not updates:
                return await self.get_campaign(campaign_id)

            set_clauses = []
            params: List[Any] = []

            for key, value in updates.items():
                params.append(_to_db_value(value))
                set_clauses.append(f"{key} = ${len(params)}")

            params.append(datetime.now(timezone.utc))
            set_clauses.append(f"updated_at = ${len(params)}")

            params.append(campaign_id)
            query = f'''
                UPDATE {self.schema}.{self.campaigns_table}
                SET {", ".join(set_clauses)}
                WHERE campaign_id = ${len(params)}
                RETURNING *
            '''

            async with self.db:
                row = await self.db.query_row(query, params=params)

            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error updating campaign {campaign_id}: {e}")
            raise

    async def update_campaign_status(
        self,
        campaign_id: str,
        status: CampaignStatus,
        expected_status: Optional[List[CampaignStatus]] = None,
        updated_by: Optional[str] = None,
    ) -> Optional[Campaign]:
        """Compare-and-set campaign status"""
        try:
            params: List[Any] = [status.value, updated_by, datetime.now(timezone.utc), campaign_id]
            guard = ""
            if expected_status:
                params.append([s.value for s in expected_status])
                guard = f"AND status = ANY(${len(params)})"

            query = f'''
                UPDATE {self.schema}.{self.campaigns_table}
                SET status = $1,
                    updated_by = COALESCE($2, updated_by),
                    updated_at = $3
                WHERE campaign_id = $4 {guard}
                RETURNING *
            '''

            async with self.db:
                row = await self.db.query_row(query, params=params)

            return self._row_to_campaign(row) if row else None

        except Exception as e:
            logger.error(f"Error updating status of campaign {campaign_id}: {e}")
            raise

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Delete campaign"""
        try:
            query = f'''
                DELETE FROM {self.schema}.{self.campaigns_table}
                WHERE campaign_id = $1
            '''

            async with self.db:
                deleted = await self.db.execute(query, params=[campaign_id])

            return deleted > 0

        except Exception as e:
            logger.error(f"Error deleting campaign {campaign_id}: {e}")
            raise

    # ====================
    # Active Campaign Lookup
    # ====================

    async def find_active_campaigns(
        self, now: datetime, limit: Optional[int] = None
    ) -> List[Campaign]:
        """ACTIVE campaigns whose window contains ``now``"""
        try:
            params: List[Any] = [CampaignStatus.ACTIVE.value, now]
            limit_clause = ""
            if limit is not None:
                params.append(limit)
                limit_clause = f"LIMIT ${len(params)}"

            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE status = $1 AND start_date <= $2 AND end_date >= $2
                ORDER BY start_date DESC, created_at DESC
                {limit_clause}
            '''

            async with self.db:
                rows = await self.db.query(query, params=params)

            return [self._row_to_campaign(r) for r in rows]

        except Exception as e:
            logger.error(f"Error finding active campaigns: {e}")
            raise

    # ====================
    # Lifecycle Sweeps
    # ====================

    async def end_expired_campaigns(self, now: datetime) -> List[str]:
        """Bulk ACTIVE -> ENDED for campaigns past their end date"""
        query = f'''
            UPDATE {self.schema}.{self.campaigns_table}
            SET status = $1, updated_at = $2
            WHERE status = $3 AND end_date < $2
            RETURNING campaign_id
        '''
        params = [CampaignStatus.ENDED.value, now, CampaignStatus.ACTIVE.value]

        try:
            async with self.db:
                rows = await self.db.query(query, params=params)
            return [r["campaign_id"] for r in rows]
        except Exception as e:
            logger.error(f"Error ending expired campaigns: {e}")
            raise

    async def activate_due_campaigns(self, now: datetime) -> List[str]:
        """Bulk SCHEDULED -> ACTIVE for campaigns whose window has opened"""
        query = f'''
            UPDATE {self.schema}.{self.campaigns_table}
            SET status = $1, updated_at = $2
            WHERE status = $3 AND start_date <= $2 AND end_date >= $2
            RETURNING campaign_id
        '''
        params = [CampaignStatus.ACTIVE.value, now, CampaignStatus.SCHEDULED.value]

        try:
            async with self.db:
                rows = await self.db.query(query, params=params)
            return [r["campaign_id"] for r in rows]
        except Exception as e:
            logger.error(f"Error activating scheduled campaigns: {e}")
            raise

    # ====================
    # Analytics
    # ====================

    async def increment_analytics(
        self, campaign_id: str, order_amount: Decimal, discount_amount: Decimal
    ) -> bool:
        """Atomic counter update; False when the campaign row is gone"""
        query = f'''
            UPDATE {self.schema}.{self.campaigns_table}
            SET total_orders = total_orders + 1,
                total_revenue = total_revenue + $2,
                total_discount = total_discount + $3
            WHERE campaign_id = $1
        '''

        try:
            async with self.db:
                updated = await self.db.execute(
                    query, params=[campaign_id, order_amount, discount_amount]
                )
            return updated > 0
        except Exception as e:
            logger.error(f"Error recording analytics for campaign {campaign_id}: {e}")
            raise

    # ====================
    # Row Mapping
    # ====================

    def _row_to_campaign(self, row: Dict[str, Any]) -> Campaign:
        """Convert database row to Campaign model"""
        return Campaign.model_construct(
            campaign_id=row.get("campaign_id"),
            name=row.get("name"),
            description=row.get("description"),
            status=CampaignStatus(row.get("status")),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            applies_to=[CampaignAudienceTag(t) for t in (row.get("applies_to") or [])],
            only_products_with_permission=row.get("only_products_with_permission", True),
            discount_source=DiscountSource(row.get("discount_source")),
            max_discount_percent=Decimal(str(row.get("max_discount_percent", 0))),
            use_max_as_override=row.get("use_max_as_override", False),
            badge_text=row.get("badge_text"),
            badge_text_localized=row.get("badge_text_localized"),
            total_orders=row.get("total_orders", 0),
            total_revenue=Decimal(str(row.get("total_revenue", 0))),
            total_discount=Decimal(str(row.get("total_discount", 0))),
            created_by=row.get("created_by"),
            updated_by=row.get("updated_by"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


__all__ = ["CampaignRepository"]
