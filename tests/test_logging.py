"""Secret redaction in log events."""

from src.nurse_visits.logging import redact_secrets


def test_password_and_key_are_redacted():
    event = {"event": "login_forwarded", "email": "nurse@school.ac.th", "password": "hunter2"}
    result = redact_secrets(None, "info", event)
    assert result["password"] == "[redacted]"
    assert result["email"] == "nurse@school.ac.th"


def test_events_without_secrets_are_untouched():
    event = {"event": "bookings_forwarded", "count": 3}
    assert redact_secrets(None, "info", dict(event)) == event
