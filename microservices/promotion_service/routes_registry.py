"""
Promotion Service Routes Registry

Defines service metadata and the public route table.
"""

SERVICE_METADATA = {
    "service_name": "promotion_service",
    "version": "1.0.0",
    "tags": ["promotion", "campaign", "pricing", "v1"],
    "capabilities": ["campaign_management", "campaign_lifecycle", "discount_resolution", "campaign_analytics"],
}

ROUTES = [
    {"path": "/health", "methods": ["GET"], "description": "Health check"},
    {"path": "/health/ready", "methods": ["GET"], "description": "Readiness check"},
    {"path": "/health/live", "methods": ["GET"], "description": "Liveness check"},
    {"path": "/api/v1/campaigns/health", "methods": ["GET"], "description": "Service health check (API v1)"},
    {"path": "/api/v1/campaigns/active", "methods": ["GET"], "description": "Currently active campaign"},
    {"path": "/api/v1/campaigns/calculate-discount", "methods": ["POST"], "description": "Discount for one product"},
    {"path": "/api/v1/campaigns/calculate-discounts", "methods": ["POST"], "description": "Discounts for a product listing"},
    {"path": "/api/v1/campaigns/sweeps/expired", "methods": ["POST"], "description": "End expired campaigns"},
    {"path": "/api/v1/campaigns/sweeps/scheduled", "methods": ["POST"], "description": "Activate due scheduled campaigns"},
    {"path": "/api/v1/campaigns", "methods": ["GET", "POST"], "description": "List or create campaigns"},
    {"path": "/api/v1/campaigns/{campaign_id}", "methods": ["GET", "PATCH", "DELETE"], "description": "Campaign CRUD"},
    {"path": "/api/v1/campaigns/{campaign_id}/activate", "methods": ["POST"], "description": "Activate campaign"},
    {"path": "/api/v1/campaigns/{campaign_id}/deactivate", "methods": ["POST"], "description": "Pause campaign"},
    {"path": "/api/v1/campaigns/{campaign_id}/schedule", "methods": ["POST"], "description": "Schedule campaign"},
    {"path": "/api/v1/campaigns/{campaign_id}/end", "methods": ["POST"], "description": "End campaign"},
    {"path": "/api/v1/campaigns/{campaign_id}/orders", "methods": ["POST"], "description": "Record campaign order"},
    {"path": "/api/v1/campaigns/{campaign_id}/analytics", "methods": ["GET"], "description": "Campaign analytics"},
]


__all__ = ["SERVICE_METADATA", "ROUTES"]
