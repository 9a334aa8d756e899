"""Tests for Settings configuration model."""

from pathlib import Path

import pytest

from mantle.config import Settings


class TestSmsEnabled:
    def test_all_fields_set(self):
        s = Settings(
            telnyx_api_key="key",
            telnyx_phone_number="+15550000000",
            owner_phone_number="+15551111111",
        )
        assert s.sms_enabled() is True

    def test_missing_owner(self):
        s = Settings(telnyx_api_key="key", telnyx_phone_number="+15550000000")
        assert s.sms_enabled() is False

    def test_default_disabled(self):
        assert Settings().sms_enabled() is False


class TestValidateRequired:
    def test_missing_api_key(self):
        assert Settings().validate_required() == ["ANTHROPIC_API_KEY"]

    def test_all_present(self):
        assert Settings(anthropic_api_key="sk-test").validate_required() == []


class TestDefaults:
    def test_context_limits(self):
        s = Settings()
        assert s.context_history_limit == 30
        assert s.context_cross_channel_limit == 10
        assert s.primary_channel == "chat"

    def test_scan_policy(self):
        s = Settings()
        assert s.free_scan_allowance == 10
        assert s.trust_alert_threshold == 80

    def test_usage_window(self):
        assert Settings().usage_window == 1000

    def test_default_database_path(self):
        assert Settings().database_path == Path("data/mantle.db")

    def test_default_agent_name(self):
        assert Settings().agent_name == "Unnamed Agent"


class TestExtraForbidden:
    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="extra_forbidden"):
            Settings(**{"nonexistent_field": "value"})
