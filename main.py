"""
Stripe Payments Gateway - Main Application Entry Point

This module initializes the FastAPI application and sets up the core routing.
The gateway exposes thin JSON routes over the Stripe API for mobile and web
clients and receives signed Stripe webhook events.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api import routes, webhooks
from api.errors import APIError, api_error_handler
from api.middleware import log_api_entry
from core.dependencies import (
    clear_settings,
    get_settings,
    init_dispatcher,
    init_settings,
)
from core.logging import configure_logging
from core.metrics import add_metrics_auth_middleware, init_metrics
from core.settings import Settings
from core.tracing import init_tracer

log = structlog.get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events."""
    # Startup
    init_settings()
    settings = get_settings()

    # Initialize OpenTelemetry tracing
    init_tracer(settings.OTEL_SERVICE_NAME)

    # Register webhook handlers once for the life of the process
    init_dispatcher()

    log.info(
        "app.startup",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        webhook_tolerance_seconds=settings.WEBHOOK_TOLERANCE_SECONDS,
    )
    yield
    # Shutdown
    clear_settings()


app = FastAPI(
    title="Stripe Payments Gateway",
    description="""
    ## Stripe Payments Gateway

    JSON routes over the Stripe API for mobile and web checkout clients.

    ### Key Features:
    - **Payment Intents**: one-off payments and payments with saved cards
    - **Setup Intents**: save cards for later off-session use
    - **Customers**: find-or-create by email, ephemeral keys, card management
    - **Subscriptions**: recurring products, prices and subscriptions
    - **Webhooks**: signature-verified Stripe events with per-type handlers
    """,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Initialize FastAPI instrumentation
FastAPIInstrumentor.instrument_app(app)

# Initialize Prometheus metrics
init_metrics(app)

# Add metrics authentication middleware (for production)
add_metrics_auth_middleware(app)

# Add logging middleware
app.middleware("http")(log_api_entry)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(APIError, api_error_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error("api.unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint providing API information."""
    return {
        "name": "Stripe Payments Gateway",
        "version": VERSION,
        "api_documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_spec": "/openapi.json",
        },
        "endpoints": {
            "payment_intents": [
                "POST /create-payment-intent",
                "POST /confirm-payment",
                "POST /create-payment-with-saved-method",
            ],
            "setup_intents": [
                "POST /create-setup-intent",
                "POST /retrieve-setup-intent",
            ],
            "customers": [
                "POST /create-customer",
                "POST /get-ephemeral-key",
                "POST /get-payment-methods",
                "POST /list-payment-methods",
                "POST /delete-payment-method",
                "POST /attach-token-to-customer",
                "POST /update-cvc-token",
            ],
            "subscriptions": [
                "POST /create-subscription",
                "POST /create-product",
                "POST /charge-token",
            ],
            "utilities": ["GET /health", "GET /config", "POST /webhook"],
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}


@app.get("/config")
async def client_config(settings: Settings = Depends(get_settings)):
    """Publishable configuration for checkout clients."""
    return {
        "publishable_key": settings.STRIPE_PUBLISHABLE_KEY,
        "success_url": settings.SUCCESS_URL,
        "cancel_url": settings.CANCEL_URL,
    }


app.include_router(routes.router)
app.include_router(webhooks.router, tags=["webhooks"])


def main():
    import uvicorn

    configure_logging()
    settings = Settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
