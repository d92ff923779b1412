"""
Setup intent routes for saving a card for later use.
"""

from fastapi import APIRouter, Depends

from api.errors import bad_request, provider_failure
from api.schemas import (
    CreateSetupIntentRequest,
    RetrieveSetupIntentRequest,
    SetupIntentCreated,
    SetupIntentOut,
)
from core.dependencies import get_stripe_service
from payments.stripe_service import StripeError, StripeService

router = APIRouter()


@router.post("/create-setup-intent", response_model=SetupIntentCreated)
async def create_setup_intent(
    req: CreateSetupIntentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Create a SetupIntent, attaching it to the customer with this email if given."""
    try:
        return await stripe_service.create_setup_intent(
            customer_email=req.customer_email, usage=req.usage
        )
    except StripeError as e:
        raise provider_failure("Failed to create setup intent", e.message)


@router.post("/retrieve-setup-intent", response_model=SetupIntentOut)
async def retrieve_setup_intent(
    req: RetrieveSetupIntentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    if not req.setup_intent_id:
        raise bad_request("Setup Intent ID is required")

    try:
        return await stripe_service.retrieve_setup_intent(req.setup_intent_id)
    except StripeError as e:
        raise provider_failure("Failed to retrieve setup intent", e.message)
