import logging
import os
import sys

import structlog
from opentelemetry.instrumentation.logging import LoggingInstrumentor


def get_log_level():
    """Get log level from environment or default to INFO"""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_renderer():
    """Get log renderer based on environment"""
    env = os.getenv("ENVIRONMENT", "development")
    # Use JSON format for tests and production
    if env in ["test", "production"]:
        return structlog.processors.JSONRenderer()
    # Pretty printing for local development
    return structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)


def configure_logging():
    """Set up structlog + OTEL context injection."""
    env = os.getenv("ENVIRONMENT", "development")

    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            get_log_renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Tests swap processors with capture_logs, so loggers must not be cached
        cache_logger_on_first_use=env != "test",
    )

    if env == "test":
        # In test mode, write to stdout for easier capture
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]  # Replace any existing handlers
    root_logger.setLevel(get_log_level())

    # Silence Uvicorn noise but keep access logs routed through structlog
    logging.getLogger("uvicorn.error").handlers.clear()
    logging.getLogger("uvicorn.access").handlers.clear()

    # Stripe's SDK logs request bodies at debug level
    logging.getLogger("stripe").setLevel(logging.WARNING)

    # Initialize OpenTelemetry logging instrumentation AFTER configuring logging
    LoggingInstrumentor().instrument(set_logging_format=False)


# Business Event Log Names
class BusinessEvents:
    """Standard names for business event logs"""

    API_ENTRY = "api.request"

    PAYMENT_INTENT_CREATED = "payment_intent.created"
    PAYMENT_INTENT_RETRIEVED = "payment_intent.retrieved"
    SETUP_INTENT_CREATED = "setup_intent.created"
    SETUP_INTENT_RETRIEVED = "setup_intent.retrieved"
    CUSTOMER_READY = "customer.ready"
    PAYMENT_METHOD_DETACHED = "payment_method.detached"
    SUBSCRIPTION_CREATED = "subscription.created"
    PRODUCT_CREATED = "product.created"
    CHARGE_CREATED = "charge.created"
    CARD_SOURCE_UPDATED = "card_source.updated"
    PROVIDER_ERROR = "stripe.error"

    WEBHOOK_RECEIVED = "webhook.received"
    WEBHOOK_REJECTED = "webhook.rejected"
    WEBHOOK_DISPATCHED = "webhook.dispatched"
    WEBHOOK_UNHANDLED = "webhook.unhandled"
    WEBHOOK_HANDLER_FAILED = "webhook.handler_failed"


# Configure logging when module is imported
configure_logging()
