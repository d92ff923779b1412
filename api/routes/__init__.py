"""
API Routes Package

This module consolidates the Stripe provider routes of the gateway.
"""

from fastapi import APIRouter

from . import customers
from . import payments
from . import setup_intents
from . import subscriptions

# Create main router
router = APIRouter()

# Include all route modules
router.include_router(payments.router, tags=["payment intents"])
router.include_router(setup_intents.router, tags=["setup intents"])
router.include_router(customers.router, tags=["customers"])
router.include_router(subscriptions.router, tags=["subscriptions"])

# Export for use in main application
__all__ = ["router"]
