from typing import Literal

from dotenv import load_dotenv
from pydantic import ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings

# Load .env file automatically
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Stripe credentials
    STRIPE_API_KEY: SecretStr
    STRIPE_WEBHOOK_SECRET: SecretStr
    STRIPE_PUBLISHABLE_KEY: str = ""
    STRIPE_EPHEMERAL_KEY_API_VERSION: str = "2023-10-16"

    # Maximum age of a signed webhook timestamp, in seconds
    WEBHOOK_TOLERANCE_SECONDS: int = Field(300, gt=0)

    # Checkout redirects (served to clients via /config)
    SUCCESS_URL: str = "http://localhost:3000/success"
    CANCEL_URL: str = "http://localhost:3000/cancel"
    PAYMENT_RETURN_URL: str = "http://localhost:3000/return"

    # App settings
    APP_NAME: str = "Stripe Payments Gateway"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Observability (Optional)
    OTEL_SERVICE_NAME: str = "stripe-gateway"
    METRICS_ENABLED: bool = True

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def webhook_secret(self) -> str:
        return self.STRIPE_WEBHOOK_SECRET.get_secret_value()

    @property
    def stripe_api_key(self) -> str:
        return self.STRIPE_API_KEY.get_secret_value()
