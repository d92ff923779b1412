"""
Stripe Webhook Verification and Dispatch

This module authenticates inbound Stripe event notifications and routes them
to registered handlers:
- Signature verification against the raw request body
- Decoding verified bodies into immutable WebhookEvent objects
- Dispatching events to exactly one handler keyed by event type
"""

import hashlib
import hmac
import inspect
import time
from collections.abc import Awaitable, Callable
from typing import Any, Optional, Union

import stripe
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError
from starlette.concurrency import run_in_threadpool

from core.logging import BusinessEvents
from core.metrics import webhook_events_total, webhook_handler_failures
from core.settings import Settings
from core.tracing import get_tracer

log = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

SIGNATURE_HEADER = "stripe-signature"
DEFAULT_TOLERANCE_SECONDS = 300

Payload = dict[str, Any]
Handler = Callable[[Payload], Union[None, Awaitable[None]]]
FailureHook = Callable[["WebhookEvent", Exception], None]


class WebhookError(Exception):
    """Base class for webhook rejections surfaced to the caller as HTTP 400."""

    public_message = "webhook rejected"


class WebhookUnauthorized(WebhookError):
    public_message = "signature verification failed"


class MalformedEvent(WebhookError):
    public_message = "malformed event payload"


class _EventData(BaseModel):
    object: dict[str, Any]


class _EventEnvelope(BaseModel):
    id: str
    type: str
    data: _EventData


class WebhookEvent(BaseModel):
    """A verified Stripe event."""

    id: str
    type: str
    payload: dict[str, Any]
    received_signature: str
    raw_body: bytes

    model_config = ConfigDict(frozen=True)


class WebhookVerifier:
    """Checks the Stripe signature header against the exact body bytes."""

    def __init__(self, secret: str, tolerance: int = DEFAULT_TOLERANCE_SECONDS):
        if not secret:
            raise ValueError("webhook secret must not be empty")
        # The SDK skips the timestamp check entirely for a zero tolerance
        if tolerance <= 0:
            raise ValueError("webhook tolerance must be a positive number of seconds")
        self._secret = secret
        self.tolerance = tolerance

    @classmethod
    def from_settings(cls, settings: Settings) -> "WebhookVerifier":
        return cls(settings.webhook_secret, settings.WEBHOOK_TOLERANCE_SECONDS)

    def __repr__(self) -> str:
        return f"WebhookVerifier(tolerance={self.tolerance})"

    def verify(self, raw_body: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify a signed body and decode it into a WebhookEvent.

        Raises:
            WebhookUnauthorized: header missing, malformed or mismatched, or
                its timestamp is older than the tolerance window.
            MalformedEvent: the signature is valid but the body is not
                UTF-8 JSON shaped like a Stripe event.
        """
        if not signature:
            raise WebhookUnauthorized("missing signature header")

        try:
            body = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            # The SDK only verifies text, so check the HMAC over the raw bytes
            self._verify_bytes(raw_body, signature)
            raise MalformedEvent("body is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                body, signature, self._secret, self.tolerance
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookUnauthorized(str(e)) from e

        try:
            envelope = _EventEnvelope.model_validate_json(raw_body)
        except ValidationError as e:
            raise MalformedEvent(f"{e.error_count()} validation error(s)") from e

        return WebhookEvent(
            id=envelope.id,
            type=envelope.type,
            payload=envelope.data.object,
            received_signature=signature,
            raw_body=raw_body,
        )

    def _verify_bytes(self, raw_body: bytes, signature: str) -> None:
        timestamp, candidates = _parse_signature_header(signature)
        if timestamp is None or not candidates:
            raise WebhookUnauthorized("unable to parse signature header")

        expected = compute_signature(raw_body, self._secret, timestamp)
        if not any(hmac.compare_digest(expected, c) for c in candidates):
            raise WebhookUnauthorized("signature mismatch")
        if timestamp < time.time() - self.tolerance:
            raise WebhookUnauthorized("timestamp outside the tolerance zone")


class WebhookDispatcher:
    """
    Routes verified events to handlers registered by event type.

    Exactly one handler runs per event. Unregistered types go to the default
    handler. Handler exceptions are logged, counted and passed to the failure
    hook; they never propagate to the caller.
    """

    def __init__(
        self,
        default: Optional[Handler] = None,
        on_failure: Optional[FailureHook] = None,
    ):
        self._handlers: dict[str, Handler] = {}
        self._default = default
        self._on_failure = on_failure

    def register(self, event_type: str, handler: Optional[Handler] = None):
        """Register a handler, directly or as a decorator."""
        if handler is None:

            def decorator(func: Handler) -> Handler:
                self.register(event_type, func)
                return func

            return decorator

        if event_type in self._handlers:
            raise ValueError(f"handler already registered for {event_type!r}")
        self._handlers[event_type] = handler
        return handler

    def handles(self, event_type: str) -> bool:
        return event_type in self._handlers

    @property
    def event_types(self) -> list[str]:
        return sorted(self._handlers)

    def resolve(self, event_type: str) -> Optional[Handler]:
        return self._handlers.get(event_type)

    async def dispatch(self, event: WebhookEvent) -> None:
        handler = self.resolve(event.type)
        outcome = "handled" if handler is not None else "unhandled"

        with tracer.start_as_current_span("webhook.dispatch") as span:
            span.set_attribute("stripe.event_id", event.id)
            span.set_attribute("stripe.event_type", event.type)

            if handler is None:
                log.info(
                    BusinessEvents.WEBHOOK_UNHANDLED,
                    event_id=event.id,
                    event_type=event.type,
                )
                handler = self._default

            try:
                if handler is not None:
                    await _invoke(handler, event.payload)
            except Exception as e:
                span.record_exception(e)
                self._record_failure(event, e)
            else:
                log.info(
                    BusinessEvents.WEBHOOK_DISPATCHED,
                    event_id=event.id,
                    event_type=event.type,
                    outcome=outcome,
                )
            finally:
                webhook_events_total.labels(
                    event_type=event.type, outcome=outcome
                ).inc()

    def _record_failure(self, event: WebhookEvent, error: Exception) -> None:
        webhook_handler_failures.labels(event_type=event.type).inc()
        log.error(
            BusinessEvents.WEBHOOK_HANDLER_FAILED,
            event_id=event.id,
            event_type=event.type,
            error=str(error),
            exc_info=error,
        )
        if self._on_failure is None:
            return
        try:
            self._on_failure(event, error)
        except Exception as hook_error:
            log.error(
                "webhook.failure_hook_failed",
                event_id=event.id,
                error=str(hook_error),
            )


async def _invoke(handler: Handler, payload: Payload) -> None:
    if inspect.iscoroutinefunction(handler):
        await handler(payload)
    else:
        await run_in_threadpool(handler, payload)


def _parse_signature_header(header: str) -> tuple[Optional[int], list[str]]:
    timestamp = None
    signatures = []
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                return None, []
        elif key == "v1":
            signatures.append(value)
    return timestamp, signatures


def compute_signature(raw_body: bytes, secret: str, timestamp: int) -> str:
    """Hex HMAC-SHA256 of ``"{timestamp}.{raw_body}"`` keyed with the secret."""
    signed = f"{timestamp}.".encode("utf-8") + raw_body
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def sign_payload(raw_body: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a ``stripe-signature`` header value for a body, as Stripe would."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},v1={compute_signature(raw_body, secret, timestamp)}"
