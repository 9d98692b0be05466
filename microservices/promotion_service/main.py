"""
Promotion Service Main Application

FastAPI application for promotional campaigns and campaign discounts.
Port: 8252
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Depends, Request, status
from fastapi.responses import JSONResponse

from core.config_manager import ConfigManager

from .models import (
    CampaignCreateRequest,
    CampaignUpdateRequest,
    CampaignResponse,
    CampaignListResponse,
    CampaignStatus,
    CampaignAnalytics,
    ActiveCampaignResponse,
    DiscountCalculationRequest,
    DiscountResponse,
    BatchDiscountRequest,
    BatchDiscountResponse,
    OrderRecordRequest,
    OrderRecordResponse,
    SweepResponse,
    HealthResponse,
    ReadinessResponse,
    LivenessResponse,
)
from .factory import PromotionServiceFactory
from .routes_registry import SERVICE_METADATA
from .protocols import (
    CampaignNotFoundError,
    InvalidCampaignIdError,
    InvalidCampaignStateError,
    CampaignValidationError,
)

# Service configuration
SERVICE_NAME = SERVICE_METADATA["service_name"]
SERVICE_VERSION = SERVICE_METADATA["version"]

config = ConfigManager(SERVICE_NAME)
SERVICE_PORT = config.promotion.service_port

# Configure logging
config.logging.configure()
logger = logging.getLogger(__name__)

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[PromotionServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = PromotionServiceFactory(config)
    await factory.initialize()

    yield

    # Cleanup
    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


# Create FastAPI application
app = FastAPI(
    title="Promotion Service",
    description="Promotional campaign lifecycle and campaign discount resolution",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(InvalidCampaignStateError)
async def invalid_state_handler(request: Request, exc: InvalidCampaignStateError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "current_status": exc.current_status.value if exc.current_status else None,
        },
    )


@app.exception_handler(InvalidCampaignIdError)
async def invalid_id_handler(request: Request, exc: InvalidCampaignIdError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.exception_handler(CampaignValidationError)
async def validation_error_handler(request: Request, exc: CampaignValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "field": exc.field},
    )


# ====================
# Dependencies
# ====================


def get_service():
    """Get campaign service from factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.service


def get_auth_context(request: Request) -> dict:
    """Extract auth context from request headers"""
    return {
        "user_id": request.headers.get("X-User-ID", "system"),
        "role": request.headers.get("X-User-Role", "user"),
    }


# ====================
# Health Endpoints
# ====================


@app.get("/api/v1/campaigns/health", include_in_schema=False)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        try:
            db_healthy = await factory.repository.health_check()
            dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"
        except Exception:
            dependencies["postgres"] = "unhealthy"

        if factory.nats_client:
            dependencies["nats"] = "healthy" if factory.nats_client.is_connected else "unhealthy"
        else:
            dependencies["nats"] = "not_configured"

        if factory.scheduler and factory.scheduler.running:
            dependencies["sweep_scheduler"] = "running"
        else:
            dependencies["sweep_scheduler"] = "stopped"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {}

    if factory:
        try:
            checks["database"] = await factory.repository.health_check()
        except Exception as e:
            logger.warning(f"Readiness database check failed: {e}")
            checks["database"] = False

        # NATS is optional
        checks["nats"] = factory.nats_client.is_connected if factory.nats_client else True
    else:
        checks["factory"] = False

    ready = checks.get("database", False)

    return ReadinessResponse(ready=ready, checks=checks)


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


# ====================
# Storefront Endpoints
# ====================


@app.get(
    "/api/v1/campaigns/active",
    response_model=ActiveCampaignResponse,
    tags=["Storefront"],
)
async def get_active_campaign(service=Depends(get_service)):
    """Currently active campaign; null when none is running"""
    campaign = await service.get_active_campaign()
    return ActiveCampaignResponse(campaign=campaign)


@app.post(
    "/api/v1/campaigns/calculate-discount",
    response_model=DiscountResponse,
    tags=["Storefront"],
)
async def calculate_discount(
    request: DiscountCalculationRequest,
    service=Depends(get_service),
):
    """Campaign discount for one product"""
    discount = await service.calculate_discount(request)
    return DiscountResponse(discount=discount)


@app.post(
    "/api/v1/campaigns/calculate-discounts",
    response_model=BatchDiscountResponse,
    tags=["Storefront"],
)
async def calculate_discounts(
    request: BatchDiscountRequest,
    service=Depends(get_service),
):
    """Campaign discounts for a product listing"""
    discounts = await service.calculate_discounts(request)
    return BatchDiscountResponse(discounts=discounts)


# ====================
# Sweep Endpoints
# ====================


@app.post(
    "/api/v1/campaigns/sweeps/expired",
    response_model=SweepResponse,
    tags=["Lifecycle"],
)
async def sweep_expired(service=Depends(get_service)):
    """End every active campaign whose end date has passed"""
    transitioned = await service.sweep_expired_campaigns()
    return SweepResponse(sweep="expired", transitioned=transitioned, ran_at=service.clock.now())


@app.post(
    "/api/v1/campaigns/sweeps/scheduled",
    response_model=SweepResponse,
    tags=["Lifecycle"],
)
async def sweep_scheduled(service=Depends(get_service)):
    """Activate every scheduled campaign whose window has opened"""
    transitioned = await service.sweep_scheduled_campaigns()
    return SweepResponse(sweep="scheduled", transitioned=transitioned, ran_at=service.clock.now())


# ====================
# Campaign CRUD Endpoints
# ====================


@app.post(
    "/api/v1/campaigns",
    response_model=CampaignResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def create_campaign(
    request: CampaignCreateRequest,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """Create a new campaign in draft status"""
    campaign = await service.create_campaign(
        request=request,
        created_by=auth["user_id"],
    )

    return CampaignResponse(
        campaign=campaign,
        message="Campaign created successfully",
    )


@app.get(
    "/api/v1/campaigns",
    response_model=CampaignListResponse,
    tags=["Campaigns"],
)
async def list_campaigns(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status (comma-separated)"),
    limit: int = Query(50, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0, description="Page offset"),
    service=Depends(get_service),
):
    """List campaigns, newest first"""
    statuses = None
    if status_filter:
        try:
            statuses = [CampaignStatus(s.strip()) for s in status_filter.split(",")]
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status filter: {status_filter}",
            )

    campaigns, total = await service.list_campaigns(
        status=statuses,
        limit=limit,
        offset=offset,
    )

    return CampaignListResponse(
        campaigns=campaigns,
        total=total,
        limit=limit,
        offset=offset,
        has_more=(offset + len(campaigns)) < total,
    )


@app.get(
    "/api/v1/campaigns/{campaign_id}",
    response_model=CampaignResponse,
    tags=["Campaigns"],
)
async def get_campaign(
    campaign_id: str,
    service=Depends(get_service),
):
    """Get campaign by ID"""
    campaign = await service.get_campaign(campaign_id)
    return CampaignResponse(campaign=campaign)


@app.patch(
    "/api/v1/campaigns/{campaign_id}",
    response_model=CampaignResponse,
    tags=["Campaigns"],
)
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """Update campaign settings; ended campaigns are read-only"""
    campaign = await service.update_campaign(
        campaign_id=campaign_id,
        request=request,
        updated_by=auth["user_id"],
    )

    return CampaignResponse(
        campaign=campaign,
        message="Campaign updated successfully",
    )


@app.delete(
    "/api/v1/campaigns/{campaign_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Campaigns"],
)
async def delete_campaign(
    campaign_id: str,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """Delete campaign"""
    await service.delete_campaign(campaign_id, deleted_by=auth["user_id"])


# ====================
# Campaign Lifecycle Endpoints
# ====================


@app.post(
    "/api/v1/campaigns/{campaign_id}/activate",
    response_model=CampaignResponse,
    tags=["Lifecycle"],
)
async def activate_campaign(
    campaign_id: str,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """Activate campaign now"""
    campaign = await service.activate_campaign(campaign_id, activated_by=auth["user_id"])
    return CampaignResponse(campaign=campaign, message="Campaign activated")


@app.post(
    "/api/v1/campaigns/{campaign_id}/deactivate",
    response_model=CampaignResponse,
    tags=["Lifecycle"],
)
async def deactivate_campaign(
    campaign_id: str,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """Pause an active campaign"""
    campaign = await service.deactivate_campaign(campaign_id, paused_by=auth["user_id"])
    return CampaignResponse(campaign=campaign, message="Campaign paused")


@app.post(
    "/api/v1/campaigns/{campaign_id}/schedule",
    response_model=CampaignResponse,
    tags=["Lifecycle"],
)
async def schedule_campaign(
    campaign_id: str,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """Schedule campaign for automatic activation at its start date"""
    campaign = await service.schedule_campaign(campaign_id, scheduled_by=auth["user_id"])
    return CampaignResponse(campaign=campaign, message="Campaign scheduled")


@app.post(
    "/api/v1/campaigns/{campaign_id}/end",
    response_model=CampaignResponse,
    tags=["Lifecycle"],
)
async def end_campaign(
    campaign_id: str,
    service=Depends(get_service),
    auth: dict = Depends(get_auth_context),
):
    """End campaign"""
    campaign = await service.end_campaign(campaign_id, ended_by=auth["user_id"])
    return CampaignResponse(campaign=campaign, message="Campaign ended")


# ====================
# Analytics Endpoints
# ====================


@app.post(
    "/api/v1/campaigns/{campaign_id}/orders",
    response_model=OrderRecordResponse,
    tags=["Analytics"],
)
async def record_order(
    campaign_id: str,
    request: OrderRecordRequest,
    service=Depends(get_service),
):
    """Record a completed order against the campaign"""
    recorded = await service.record_order(
        campaign_id, request.order_amount, request.discount_amount
    )
    return OrderRecordResponse(recorded=recorded)


@app.get(
    "/api/v1/campaigns/{campaign_id}/analytics",
    response_model=CampaignAnalytics,
    tags=["Analytics"],
)
async def get_campaign_analytics(
    campaign_id: str,
    service=Depends(get_service),
):
    """Cumulative order figures for a campaign"""
    return await service.get_campaign_analytics(campaign_id)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.promotion_service.main:app",
        host=config.settings.default_host,
        port=SERVICE_PORT,
        log_level=config.logging.log_level.lower(),
    )


if __name__ == "__main__":
    main()
