"""
Webhook endpoint for Stripe events
"""

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse

from api.schemas import WebhookAck
from core.dependencies import get_dispatcher, get_webhook_verifier
from core.logging import BusinessEvents
from core.metrics import webhook_events_total
from payments.webhooks import (
    SIGNATURE_HEADER,
    MalformedEvent,
    WebhookDispatcher,
    WebhookError,
    WebhookVerifier,
)

log = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={400: {"description": "Signature verification or decoding failed"}},
)
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    verifier: WebhookVerifier = Depends(get_webhook_verifier),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    """
    Receive a signed Stripe event.

    The body is read as raw bytes and verified before anything parses it.
    Accepted events are acknowledged immediately and handled after the
    response is sent, so a failing handler never triggers a redelivery.
    """
    signature = request.headers.get(SIGNATURE_HEADER)
    payload = await request.body()

    try:
        event = verifier.verify(payload, signature)
    except WebhookError as e:
        outcome = "malformed" if isinstance(e, MalformedEvent) else "rejected"
        webhook_events_total.labels(event_type="unknown", outcome=outcome).inc()
        log.warning(
            BusinessEvents.WEBHOOK_REJECTED,
            outcome=outcome,
            reason=str(e),
            body_bytes=len(payload),
        )
        return PlainTextResponse(f"Webhook Error: {e.public_message}", status_code=400)

    log.info(BusinessEvents.WEBHOOK_RECEIVED, event_id=event.id, event_type=event.type)
    background_tasks.add_task(dispatcher.dispatch, event)
    return WebhookAck(received=True)
