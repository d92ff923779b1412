import os

import pytest
from pydantic import ValidationError

from core.settings import Settings


def test_defaults():
    settings = Settings()

    assert settings.WEBHOOK_TOLERANCE_SECONDS == 300
    assert settings.STRIPE_EPHEMERAL_KEY_API_VERSION == "2023-10-16"
    assert settings.PORT == 3000


def test_secrets_are_masked():
    settings = Settings()

    assert "whsec_test_secret" not in repr(settings)
    assert "sk_test_dummy" not in str(settings.model_dump())
    assert settings.webhook_secret == "whsec_test_secret"
    assert settings.stripe_api_key == "sk_test_dummy"


def test_tolerance_from_environment():
    os.environ["WEBHOOK_TOLERANCE_SECONDS"] = "120"

    assert Settings().WEBHOOK_TOLERANCE_SECONDS == 120


@pytest.mark.parametrize("tolerance", ["0", "-5"])
def test_tolerance_must_be_positive(tolerance):
    os.environ["WEBHOOK_TOLERANCE_SECONDS"] = tolerance

    with pytest.raises(ValidationError):
        Settings()


def test_webhook_secret_is_required():
    del os.environ["STRIPE_WEBHOOK_SECRET"]

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
