"""
Subscription, product and legacy charge routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.errors import APIError, bad_request, provider_failure
from api.schemas import (
    ChargeTokenRequest,
    CreateProductRequest,
    CreateSubscriptionRequest,
    ProductCreated,
    SubscriptionCreated,
)
from core.dependencies import get_stripe_service
from payments.stripe_service import StripeError, StripeService

router = APIRouter()


@router.post("/create-subscription", response_model=SubscriptionCreated)
async def create_subscription(
    req: CreateSubscriptionRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """
    Start an incomplete subscription for a customer.

    If ``payment_method_id`` is given it is attached to the customer and set
    as the default for invoices first. The client confirms the first invoice
    with the returned ``client_secret``.
    """
    if not req.customer_id or not req.price_id:
        raise bad_request("Customer ID and Price ID are required")

    try:
        return await stripe_service.create_subscription(
            customer_id=req.customer_id,
            price_id=req.price_id,
            payment_method_id=req.payment_method_id,
        )
    except StripeError as e:
        raise provider_failure("Failed to create subscription", e.message)


@router.post("/create-product", response_model=ProductCreated)
async def create_product(
    req: CreateProductRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Create a product with one recurring price."""
    if not req.name or not req.price:
        raise bad_request("Name and price are required")

    try:
        return await stripe_service.create_product_with_price(
            name=req.name,
            price=req.price,
            description=req.description,
            currency=req.currency,
            interval=req.interval,
        )
    except StripeError as e:
        raise provider_failure("Failed to create product", e.message)


@router.post("/charge-token")
async def charge_token(
    req: ChargeTokenRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Charge a card token directly. ``amount`` is in minor units."""
    if not req.tokenId or not req.amount:
        raise APIError(400, "Token ID and amount are required")

    try:
        charge = await stripe_service.charge_token(
            token_id=req.tokenId,
            amount=req.amount,
            currency=req.currency,
            description=req.description,
        )
    except StripeError as e:
        return JSONResponse(
            status_code=500, content={"success": False, "error": e.message}
        )
    return {"success": True, "charge": charge}
