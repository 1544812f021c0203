import structlog

from shared.logger import (
    add_service_context,
    build_processors,
    filter_sensitive_data,
)


def test_filter_sensitive_data_masks_credentials():
    event = {
        "event": "Sentiment client initialized",
        "api_key": "s3cret",
        "headers": {"Authorization": "Bearer s3cret", "accept": "json"},
        "text_length": 12,
    }

    masked = filter_sensitive_data(None, "info", event)

    assert masked["api_key"] == "[REDACTED]"
    assert masked["headers"]["Authorization"] == "[REDACTED]"
    assert masked["headers"]["accept"] == "json"
    assert masked["text_length"] == 12


def test_add_service_context():
    event = add_service_context(None, "info", {"event": "hello"})

    assert event["service"]
    assert "version" in event
    assert "environment" in event


def test_json_rendering_outside_development():
    processors = build_processors("production")

    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_console_rendering_in_development():
    processors = build_processors("development")

    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
