"""
Handlers for the Stripe events this gateway subscribes to.

Each handler receives the event's data object and records it. Fulfilment
(order updates, emails) belongs to downstream services.
"""

from typing import Any

import structlog

from payments.webhooks import WebhookDispatcher

log = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
SETUP_SUCCEEDED = "setup_intent.succeeded"
SETUP_FAILED = "setup_intent.setup_failed"
INVOICE_PAID = "invoice.payment_succeeded"
INVOICE_FAILED = "invoice.payment_failed"
SUBSCRIPTION_CANCELLED = "customer.subscription.deleted"


def handle_payment_success(payment_intent: dict[str, Any]) -> None:
    metadata = payment_intent.get("metadata") or {}
    log.info(
        "payment_intent.succeeded",
        id=payment_intent.get("id"),
        amount=payment_intent.get("amount"),
        customer_email=metadata.get("customer_email"),
        order_id=metadata.get("order_id"),
    )


def handle_payment_failure(payment_intent: dict[str, Any]) -> None:
    log.warning(
        "payment_intent.payment_failed",
        id=payment_intent.get("id"),
        last_payment_error=payment_intent.get("last_payment_error"),
    )


def handle_setup_intent_success(setup_intent: dict[str, Any]) -> None:
    log.info(
        "setup_intent.succeeded",
        id=setup_intent.get("id"),
        customer=setup_intent.get("customer"),
        payment_method=setup_intent.get("payment_method"),
        usage=setup_intent.get("usage"),
    )


def handle_setup_intent_failure(setup_intent: dict[str, Any]) -> None:
    log.warning(
        "setup_intent.setup_failed",
        id=setup_intent.get("id"),
        last_setup_error=setup_intent.get("last_setup_error"),
    )


def handle_invoice_payment_success(invoice: dict[str, Any]) -> None:
    log.info(
        "invoice.payment_succeeded",
        id=invoice.get("id"),
        subscription=invoice.get("subscription"),
        amount_paid=invoice.get("amount_paid"),
    )


def handle_invoice_payment_failure(invoice: dict[str, Any]) -> None:
    log.warning(
        "invoice.payment_failed",
        id=invoice.get("id"),
        subscription=invoice.get("subscription"),
        amount_due=invoice.get("amount_due"),
    )


def handle_subscription_cancellation(subscription: dict[str, Any]) -> None:
    log.info(
        "customer.subscription.deleted",
        id=subscription.get("id"),
        customer=subscription.get("customer"),
        ended_at=subscription.get("ended_at"),
    )


HANDLERS = {
    PAYMENT_SUCCEEDED: handle_payment_success,
    PAYMENT_FAILED: handle_payment_failure,
    SETUP_SUCCEEDED: handle_setup_intent_success,
    SETUP_FAILED: handle_setup_intent_failure,
    INVOICE_PAID: handle_invoice_payment_success,
    INVOICE_FAILED: handle_invoice_payment_failure,
    SUBSCRIPTION_CANCELLED: handle_subscription_cancellation,
}


def build_dispatcher(on_failure=None) -> WebhookDispatcher:
    """Create a dispatcher with every subscribed event type registered."""
    dispatcher = WebhookDispatcher(on_failure=on_failure)
    for event_type, handler in HANDLERS.items():
        dispatcher.register(event_type, handler)
    return dispatcher
