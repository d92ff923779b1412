"""
Payment intent routes: one-off payments and payments with a saved card.
"""

from fastapi import APIRouter, Depends

from api.errors import bad_request, provider_failure
from api.schemas import (
    ConfirmPaymentRequest,
    CreatePaymentIntentRequest,
    PaymentIntentCreated,
    PaymentStatus,
    SavedMethodPayment,
    SavedMethodPaymentRequest,
)
from core.dependencies import get_stripe_service
from payments.stripe_service import StripeError, StripeService

router = APIRouter()


@router.post("/create-payment-intent", response_model=PaymentIntentCreated)
async def create_payment_intent(
    req: CreatePaymentIntentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Create a PaymentIntent for an amount given in major units."""
    if not req.amount or req.amount <= 0:
        raise bad_request("Amount is required and must be greater than 0")

    try:
        return await stripe_service.create_payment_intent(
            amount=req.amount,
            currency=req.currency,
            customer_email=req.customer_email,
            payment_method_type=req.payment_method or "card",
        )
    except StripeError as e:
        raise provider_failure("Failed to create payment intent", e.message)


@router.post("/confirm-payment", response_model=PaymentStatus)
async def confirm_payment(
    req: ConfirmPaymentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Look up the current status of a PaymentIntent."""
    if not req.payment_intent_id:
        raise bad_request("Payment Intent ID is required")

    try:
        return await stripe_service.retrieve_payment_intent(req.payment_intent_id)
    except StripeError as e:
        raise provider_failure("Failed to confirm payment", e.message)


@router.post("/create-payment-with-saved-method", response_model=SavedMethodPayment)
async def create_payment_with_saved_method(
    req: SavedMethodPaymentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    if not req.payment_method_id or not req.amount:
        raise bad_request("Payment method ID and amount are required")

    try:
        return await stripe_service.create_payment_with_saved_method(
            payment_method_id=req.payment_method_id,
            amount=req.amount,
            currency=req.currency,
            customer_id=req.customer_id,
        )
    except StripeError as e:
        raise provider_failure("Failed to create payment with saved method", e.message)
