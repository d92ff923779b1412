"""
Prometheus metrics instrumentation for the Stripe payments gateway.

This module sets up FastAPI instrumentation to expose metrics in Prometheus format
at the /metrics endpoint with optional authentication.
"""

import os

from fastapi import Request, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

# Webhook metrics
webhook_events_total = Counter(
    "stripe_gateway_webhook_events_total",
    "Inbound webhook events by type and outcome",
    ["event_type", "outcome"],  # outcome: rejected, malformed, handled, unhandled
)

webhook_handler_failures = Counter(
    "stripe_gateway_webhook_handler_failures_total",
    "Webhook handlers that raised while processing an event",
    ["event_type"],
)

# Provider metrics
provider_errors = Counter(
    "stripe_gateway_provider_errors_total",
    "Stripe API calls that returned an error",
    ["operation"],
)


def init_metrics(app):
    """
    Initialize Prometheus metrics instrumentation for the FastAPI app.

    Args:
        app: FastAPI application instance

    Returns:
        Instrumentator instance
    """
    inst = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health"],
    )

    # Expose metrics endpoint
    inst.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    return inst


def add_metrics_auth_middleware(app):
    """
    Add middleware to protect the /metrics endpoint in production.
    For production use, set METRICS_AUTH_TOKEN environment variable.
    """

    @app.middleware("http")
    async def metrics_auth_middleware(request: Request, call_next):
        # Only protect metrics endpoint
        if request.url.path != "/metrics":
            return await call_next(request)

        # For development, allow all requests
        if os.getenv("ENVIRONMENT", "development") != "production":
            return await call_next(request)

        auth_header = request.headers.get("X-Metrics-Auth")
        expected_token = os.getenv("METRICS_AUTH_TOKEN")
        if expected_token and auth_header == expected_token:
            return await call_next(request)

        # Allow internal network access (VPN/private networks)
        client_ip = request.client.host if request.client else None
        if client_ip and (
            client_ip.startswith("10.")
            or client_ip.startswith("192.168.")
            or client_ip.startswith("172.")
        ):
            return await call_next(request)

        # HTTPException raised from middleware bypasses exception handlers
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Metrics endpoint access denied"},
        )
