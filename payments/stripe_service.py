"""
Stripe Payment Service

This module wraps the Stripe SDK calls behind the gateway's routes:
- Payment intents (one-off and saved payment methods)
- Setup intents and customers
- Payment method listing and removal
- Subscriptions, products and prices
- Card tokens and legacy charges
"""

import time
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

import stripe
import structlog
import tenacity
from starlette.concurrency import run_in_threadpool

from core.logging import BusinessEvents
from core.metrics import provider_errors
from core.settings import Settings

log = structlog.get_logger(__name__)


class StripeError(Exception):
    def __init__(self, message: str, operation: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.code = code


# Reads are safe to repeat when the connection drops; writes are not.
retry_read = tenacity.retry(
    retry=tenacity.retry_if_exception_type(stripe.APIConnectionError),
    stop=tenacity.stop_after_attempt(3),
    wait=tenacity.wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)


def to_minor_units(amount: Union[int, float, str]) -> int:
    """Convert a major-unit amount (12.34) to Stripe's minor units (1234)."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# Expanded on subscription creation; the first invoice's intent carries the
# client secret. Stripe SDKs from 12.0 pin an API version without this field.
SUBSCRIPTION_INTENT_PATH = "latest_invoice.payment_intent"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def expanded(obj: Any, path: str) -> Any:
    """Follow a dotted expand path, returning None once a step is missing."""
    for attr in path.split("."):
        if obj is None:
            return None
        obj = getattr(obj, attr, None)
    return obj


class StripeService:
    def __init__(self, settings: Settings):
        """
        Initialize StripeService.

        Args:
            settings: Application settings holding the Stripe credentials.
        """
        self.settings = settings
        stripe.api_key = settings.stripe_api_key

    async def _call(self, operation: str, func, *args, **kwargs):
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            provider_errors.labels(operation=operation).inc()
            log.error(
                BusinessEvents.PROVIDER_ERROR,
                operation=operation,
                code=e.code,
                http_status=e.http_status,
                error=message,
            )
            raise StripeError(message, operation=operation, code=e.code) from e

    # Payment intents

    async def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        customer_email: Optional[str] = None,
        payment_method_type: str = "card",
    ) -> dict[str, Any]:
        intent = await self._call(
            "payment_intent.create",
            stripe.PaymentIntent.create,
            amount=to_minor_units(amount),
            currency=currency,
            payment_method_types=[payment_method_type],
            metadata={
                "customer_email": customer_email or "unknown",
                "order_id": f"order_{int(time.time() * 1000)}",
            },
        )
        log.info(
            BusinessEvents.PAYMENT_INTENT_CREATED,
            payment_intent_id=intent.id,
            amount=intent.amount,
            currency=currency,
        )
        return {"client_secret": intent.client_secret, "payment_intent_id": intent.id}

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict[str, Any]:
        intent = await self._call(
            "payment_intent.retrieve",
            retry_read(stripe.PaymentIntent.retrieve),
            payment_intent_id,
        )
        log.info(
            BusinessEvents.PAYMENT_INTENT_RETRIEVED,
            payment_intent_id=intent.id,
            status=intent.status,
        )
        return {
            "status": intent.status,
            "amount": intent.amount,
            "currency": intent.currency,
            "payment_method": intent.payment_method,
        }

    async def create_payment_with_saved_method(
        self,
        payment_method_id: str,
        amount: float,
        currency: str = "usd",
        customer_id: Optional[str] = None,
    ) -> dict[str, Any]:
        intent = await self._call(
            "payment_intent.create",
            stripe.PaymentIntent.create,
            amount=to_minor_units(amount),
            currency=currency,
            payment_method=payment_method_id,
            customer=customer_id,
            confirmation_method="manual",
            confirm=True,
            return_url=self.settings.PAYMENT_RETURN_URL,
            metadata={"payment_type": "saved_method", "created_at": _now_iso()},
        )
        log.info(
            BusinessEvents.PAYMENT_INTENT_CREATED,
            payment_intent_id=intent.id,
            amount=intent.amount,
            status=intent.status,
            saved_method=True,
        )
        return {
            "payment_intent_id": intent.id,
            "status": intent.status,
            "amount": intent.amount,
            "client_secret": intent.client_secret,
        }

    # Customers

    async def find_or_create_customer(self, email: str, phone: Optional[str] = None):
        """Return the first customer with this email, creating one if none exists."""
        existing = await self._call(
            "customer.list", retry_read(stripe.Customer.list), email=email, limit=1
        )
        if existing.data:
            customer = existing.data[0]
            created = False
        else:
            params = {"email": email}
            if phone:
                params["phone"] = phone
            customer = await self._call(
                "customer.create", stripe.Customer.create, **params
            )
            created = True
        log.info(BusinessEvents.CUSTOMER_READY, customer_id=customer.id, created=created)
        return customer

    async def create_ephemeral_key(self, customer_id: str) -> str:
        key = await self._call(
            "ephemeral_key.create",
            stripe.EphemeralKey.create,
            customer=customer_id,
            stripe_version=self.settings.STRIPE_EPHEMERAL_KEY_API_VERSION,
        )
        return key.secret

    # Setup intents

    async def create_setup_intent(
        self, customer_email: Optional[str] = None, usage: str = "off_session"
    ) -> dict[str, Any]:
        customer = None
        if customer_email:
            customer = await self.find_or_create_customer(customer_email)

        params = {
            "usage": usage,
            "payment_method_types": ["card"],
            "metadata": {
                "customer_email": customer_email or "unknown",
                "created_at": _now_iso(),
            },
        }
        if customer is not None:
            params["customer"] = customer.id

        setup_intent = await self._call(
            "setup_intent.create", stripe.SetupIntent.create, **params
        )
        log.info(
            BusinessEvents.SETUP_INTENT_CREATED,
            setup_intent_id=setup_intent.id,
            usage=usage,
        )
        return {
            "client_secret": setup_intent.client_secret,
            "setup_intent_id": setup_intent.id,
            "customer_id": customer.id if customer is not None else None,
        }

    async def retrieve_setup_intent(self, setup_intent_id: str) -> dict[str, Any]:
        setup_intent = await self._call(
            "setup_intent.retrieve",
            retry_read(stripe.SetupIntent.retrieve),
            setup_intent_id,
        )
        log.info(
            BusinessEvents.SETUP_INTENT_RETRIEVED,
            setup_intent_id=setup_intent.id,
            status=setup_intent.status,
        )
        return {
            "id": setup_intent.id,
            "status": setup_intent.status,
            "payment_method": setup_intent.payment_method,
            "customer": setup_intent.customer,
            "usage": setup_intent.usage,
            "created": setup_intent.created,
            "metadata": setup_intent.metadata,
        }

    # Payment methods

    async def list_card_payment_methods(self, customer_id: str):
        return await self._call(
            "payment_method.list",
            retry_read(stripe.PaymentMethod.list),
            customer=customer_id,
            type="card",
        )

    async def detach_payment_method(self, payment_method_id: str) -> str:
        payment_method = await self._call(
            "payment_method.detach", stripe.PaymentMethod.detach, payment_method_id
        )
        log.info(
            BusinessEvents.PAYMENT_METHOD_DETACHED, payment_method_id=payment_method.id
        )
        return payment_method.id

    # Subscriptions and products

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str] = None,
    ) -> dict[str, Any]:
        if payment_method_id:
            await self._call(
                "payment_method.attach",
                stripe.PaymentMethod.attach,
                payment_method_id,
                customer=customer_id,
            )
            await self._call(
                "customer.modify",
                stripe.Customer.modify,
                customer_id,
                invoice_settings={"default_payment_method": payment_method_id},
            )

        subscription = await self._call(
            "subscription.create",
            stripe.Subscription.create,
            customer=customer_id,
            items=[{"price": price_id}],
            payment_behavior="default_incomplete",
            payment_settings={"save_default_payment_method": "on_subscription"},
            expand=[SUBSCRIPTION_INTENT_PATH],
        )
        log.info(
            BusinessEvents.SUBSCRIPTION_CREATED,
            subscription_id=subscription.id,
            customer_id=customer_id,
            status=subscription.status,
        )
        # Zero-amount and trial first invoices carry no payment intent
        intent = expanded(subscription, SUBSCRIPTION_INTENT_PATH)
        return {
            "subscription_id": subscription.id,
            "client_secret": intent.client_secret if intent is not None else None,
            "status": subscription.status,
        }

    async def create_product_with_price(
        self,
        name: str,
        price: float,
        description: Optional[str] = None,
        currency: str = "usd",
        interval: str = "month",
    ) -> dict[str, Any]:
        product_params = {"name": name}
        if description:
            product_params["description"] = description
        product = await self._call(
            "product.create", stripe.Product.create, **product_params
        )
        price_object = await self._call(
            "price.create",
            stripe.Price.create,
            unit_amount=to_minor_units(price),
            currency=currency,
            recurring={"interval": interval},
            product=product.id,
        )
        log.info(
            BusinessEvents.PRODUCT_CREATED,
            product_id=product.id,
            price_id=price_object.id,
            interval=interval,
        )
        return {
            "product_id": product.id,
            "price_id": price_object.id,
            "name": product.name,
            "price": price,
            "interval": interval,
        }

    # Tokens and charges

    async def charge_token(
        self,
        token_id: str,
        amount: int,
        currency: str = "usd",
        description: Optional[str] = None,
    ):
        """Charge a card token. ``amount`` is already in minor units."""
        charge = await self._call(
            "charge.create",
            stripe.Charge.create,
            amount=amount,
            currency=currency,
            source=token_id,
            description=description or "Custom token payment",
        )
        log.info(BusinessEvents.CHARGE_CREATED, charge_id=charge["id"], amount=amount)
        return charge

    async def attach_token_to_customer(self, customer_id: str, token_id: str):
        card = await self._call(
            "customer.create_source",
            stripe.Customer.create_source,
            customer_id,
            source=token_id,
        )
        log.info(
            BusinessEvents.CARD_SOURCE_UPDATED, customer_id=customer_id, card_id=card["id"]
        )
        return card

    async def update_card_cvc(self, customer_id: str, card_id: str, cvc_token: str):
        card = await self._call(
            "customer.modify_source",
            stripe.Customer.modify_source,
            customer_id,
            card_id,
            cvc_update_token=cvc_token,
        )
        log.info(
            BusinessEvents.CARD_SOURCE_UPDATED, customer_id=customer_id, card_id=card_id
        )
        return card
