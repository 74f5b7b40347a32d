"""Unit tests for structured logging setup and PII redaction."""

import json
from uuid import uuid4

import pytest
import structlog

from feedloop.observability.logging import (
    PIIRedactor,
    get_logger,
    job_context,
    setup_logging,
)


@pytest.fixture
def redactor() -> PIIRedactor:
    return PIIRedactor()


class TestPIIRedactor:
    """Tests for the redaction processor."""

    def test_redacts_feedback_text(self, redactor) -> None:
        event = {
            "event": "reply_received",
            "user_message": "My manager is great",
            "question": "What went well?",
        }

        result = redactor(None, "info", event)

        assert result["user_message"] == "[REDACTED]"
        assert result["question"] == "[REDACTED]"
        assert result["event"] == "reply_received"

    def test_redacts_secrets_case_insensitive(self, redactor) -> None:
        result = redactor(None, "info", {"API_KEY": "sk-123", "Token": "abc"})
        assert result == {"API_KEY": "[REDACTED]", "Token": "[REDACTED]"}

    def test_masks_email_and_phone_in_strings(self, redactor) -> None:
        result = redactor(
            None, "info", {"note": "reach ada@example.com or +1 (555) 123-4567"}
        )
        assert result["note"] == "reach [EMAIL] or [PHONE]"

    def test_nested_structures(self, redactor) -> None:
        event = {
            "context": {"content": "secret feedback", "count": 3},
            "items": [{"password": "x"}, "bob@example.org", 5],
        }

        result = redactor(None, "info", event)

        assert result["context"] == {"content": "[REDACTED]", "count": 3}
        assert result["items"] == [{"password": "[REDACTED]"}, "[EMAIL]", 5]

    def test_identifiers_untouched(self, redactor) -> None:
        conversation_id = "5f3a1234-5678-4123-9123-123456789012"
        result = redactor(None, "info", {"conversation_id": conversation_id})
        assert result["conversation_id"] == conversation_id

    def test_input_not_mutated(self, redactor) -> None:
        event = {"user_message": "hello"}
        redactor(None, "info", event)
        assert event == {"user_message": "hello"}


class TestSetupLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_json_output_is_redacted(self, capsys) -> None:
        setup_logging(level="INFO", format="json", redact_pii=True)

        get_logger("test").info("reply_received", user_message="private", count=2)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "reply_received"
        assert payload["user_message"] == "[REDACTED]"
        assert payload["count"] == 2
        assert payload["level"] == "info"

    def test_level_filtering(self, capsys) -> None:
        setup_logging(level="WARNING", format="json")

        logger = get_logger("test")
        logger.info("hidden_event")
        logger.warning("shown_event")

        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "shown_event" in err

    def test_redaction_can_be_disabled(self, capsys) -> None:
        setup_logging(level="INFO", format="json", redact_pii=False)

        get_logger("test").info("reply_received", user_message="visible")

        payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert payload["user_message"] == "visible"

    def test_job_context_binds_and_resets(self, capsys) -> None:
        setup_logging(level="INFO", format="json")
        logger = get_logger("test")
        conversation_id = uuid4()

        with job_context(conversation_id=conversation_id, thread_id=None):
            logger.info("inside_job")
        logger.info("after_job")

        inside, after = (
            json.loads(line) for line in capsys.readouterr().err.strip().splitlines()
        )
        assert inside["conversation_id"] == str(conversation_id)
        assert "thread_id" not in inside
        assert "conversation_id" not in after
