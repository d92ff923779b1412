"""
Customer, payment method and card token routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.errors import APIError, bad_request, provider_failure
from api.schemas import (
    AttachTokenRequest,
    CardList,
    CreateCustomerRequest,
    CustomerPaymentMethodsRequest,
    CustomerReady,
    DeletePaymentMethodRequest,
    EphemeralKeyRequest,
    UpdateCvcTokenRequest,
)
from core.dependencies import get_stripe_service
from payments.stripe_service import StripeError, StripeService

router = APIRouter()


@router.post("/create-customer", response_model=CustomerReady)
async def create_customer(
    req: CreateCustomerRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Return the customer with this email, creating one if needed."""
    if not req.email:
        raise bad_request("Email is required")

    try:
        customer = await stripe_service.find_or_create_customer(req.email, req.phone)
    except StripeError as e:
        raise APIError(500, e.message)
    return {"customerId": customer.id, "email": customer.email}


@router.post("/get-ephemeral-key")
async def get_ephemeral_key(
    req: EphemeralKeyRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Issue an ephemeral key for the mobile SDKs."""
    if not req.customerId:
        raise bad_request("Customer ID is required")

    try:
        secret = await stripe_service.create_ephemeral_key(req.customerId)
    except StripeError as e:
        raise APIError(500, e.message)
    return {"ephemeralKey": secret}


@router.post("/get-payment-methods")
async def get_payment_methods(
    req: CustomerPaymentMethodsRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Return the customer's saved cards as Stripe sends them."""
    if not req.customer_id:
        raise bad_request("Customer ID is required")

    try:
        methods = await stripe_service.list_card_payment_methods(req.customer_id)
    except StripeError as e:
        raise provider_failure("Failed to retrieve payment methods", e.message)
    return {"payment_methods": methods.data}


@router.post("/list-payment-methods", response_model=CardList)
async def list_payment_methods(
    req: CustomerPaymentMethodsRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Return a compact summary of the customer's saved cards."""
    if not req.customer_id:
        raise bad_request("Customer ID is required")

    try:
        methods = await stripe_service.list_card_payment_methods(req.customer_id)
    except StripeError as e:
        raise provider_failure("Failed to list payment methods", e.message)

    return {
        "payment_methods": [
            {
                "id": pm.id,
                "brand": pm.card.brand,
                "last4": pm.card.last4,
                "exp_month": pm.card.exp_month,
                "exp_year": pm.card.exp_year,
                "created": pm.created,
            }
            for pm in methods.data
        ],
        "has_more": methods.has_more,
    }


@router.post("/delete-payment-method")
async def delete_payment_method(
    req: DeletePaymentMethodRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    if not req.payment_method_id:
        raise bad_request("Payment method ID is required")

    try:
        detached_id = await stripe_service.detach_payment_method(req.payment_method_id)
    except StripeError as e:
        raise provider_failure("Failed to delete payment method", e.message)
    return {
        "message": "Payment method deleted successfully",
        "payment_method_id": detached_id,
    }


@router.post("/attach-token-to-customer")
async def attach_token_to_customer(
    req: AttachTokenRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Save a tokenized card as a source on the customer."""
    if not req.customerId or not req.tokenId:
        raise APIError(400, "Customer ID and token ID are required")

    try:
        card = await stripe_service.attach_token_to_customer(
            req.customerId, req.tokenId
        )
    except StripeError as e:
        return _token_failure(e)
    return {
        "success": True,
        "card": card,
        "message": "Card added to customer successfully",
    }


@router.post("/update-cvc-token")
async def update_cvc_token(
    req: UpdateCvcTokenRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Refresh a saved card's CVC with a CVC update token."""
    if not req.customerId or not req.cardId or not req.token:
        raise APIError(400, "Customer ID, card ID and token are required")

    try:
        card = await stripe_service.update_card_cvc(
            req.customerId, req.cardId, req.token
        )
    except StripeError as e:
        return _token_failure(e)
    return {
        "success": True,
        "card": card,
        "message": "Card updated to customer successfully",
    }


def _token_failure(error: StripeError) -> JSONResponse:
    return JSONResponse(
        status_code=500, content={"success": False, "error": error.message}
    )
