"""
Promotion Service

Marketplace promotion campaign microservice providing:
- Campaign lifecycle management (create, schedule, activate, pause, end)
- Automatic activation and expiry sweeps
- Referral-aware discount resolution for product prices
- Per-campaign order analytics

Port: 8252
"""

__version__ = "1.0.0"
__service__ = "promotion_service"
