import os

import structlog
from structlog.testing import capture_logs

from conftest import WEBHOOK_SECRET, encode, make_event
from core.logging import BusinessEvents, configure_logging, get_log_renderer


class _TestLogger:
    def __init__(self):
        self.output = []

    def __call__(self, logger, method_name, event_dict):
        """Process log events and store them for test assertions"""
        self.output.append(event_dict.copy())
        return event_dict


def test_structlog_json():
    test_logger = _TestLogger()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            test_logger,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    try:
        log = structlog.get_logger("test")
        log.bind(foo="bar").info("hello world")
    finally:
        configure_logging()

    log_dict = test_logger.output[-1]
    assert log_dict["foo"] == "bar"
    assert log_dict["event"] == "hello world"
    assert "timestamp" in log_dict
    assert log_dict["level"] == "info"


def test_renderer_follows_environment():
    os.environ["ENVIRONMENT"] = "production"
    assert isinstance(get_log_renderer(), structlog.processors.JSONRenderer)

    os.environ["ENVIRONMENT"] = "development"
    assert isinstance(get_log_renderer(), structlog.dev.ConsoleRenderer)


def test_api_entry_is_logged(client):
    with capture_logs() as logs:
        client.get("/health")

    entries = [e for e in logs if e["event"] == BusinessEvents.API_ENTRY]
    assert entries[0]["method"] == "GET"
    assert entries[0]["path"] == "/health"


def test_webhook_lifecycle_is_logged(post_webhook):
    with capture_logs() as logs:
        post_webhook(encode(make_event()))

    events = [e["event"] for e in logs]
    assert BusinessEvents.WEBHOOK_RECEIVED in events
    assert BusinessEvents.WEBHOOK_DISPATCHED in events


def test_webhook_rejection_logs_reason_without_secret(post_webhook):
    with capture_logs() as logs:
        post_webhook(encode(make_event()), secret="whsec_wrong")

    rejected = [e for e in logs if e["event"] == BusinessEvents.WEBHOOK_REJECTED]
    assert rejected[0]["outcome"] == "rejected"
    assert rejected[0]["reason"]
    assert all(WEBHOOK_SECRET not in str(entry) for entry in logs)
