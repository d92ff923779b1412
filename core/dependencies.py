from fastapi import Depends

from core.settings import Settings
from payments.stripe_service import StripeService
from payments.webhook_handlers import build_dispatcher
from payments.webhooks import WebhookDispatcher, WebhookVerifier

# Singletons populated during application startup
_settings = None
_dispatcher = None


def get_settings() -> Settings:
    """Dependency that provides application settings."""
    assert (
        _settings is not None
    ), "Settings not initialized. Make sure startup() was called."
    return _settings


def init_settings():
    """Initialize settings singleton."""
    global _settings
    _settings = Settings()


def clear_settings():
    """Clear settings and the handler registry."""
    global _settings, _dispatcher
    _settings = None
    _dispatcher = None


def init_dispatcher():
    """Build the webhook handler registry once at startup."""
    global _dispatcher
    _dispatcher = build_dispatcher()


def get_dispatcher() -> WebhookDispatcher:
    """Dependency that provides the webhook dispatcher."""
    assert (
        _dispatcher is not None
    ), "Dispatcher not initialized. Make sure startup() was called."
    return _dispatcher


def get_webhook_verifier(
    settings: Settings = Depends(get_settings),
) -> WebhookVerifier:
    """Dependency that builds a verifier from the loaded settings."""
    return WebhookVerifier.from_settings(settings)


def get_stripe_service(settings: Settings = Depends(get_settings)) -> StripeService:
    """Dependency that provides a Stripe service bound to the loaded settings."""
    return StripeService(settings)
