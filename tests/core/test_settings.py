"""Tests for JobSettings."""

import pytest
from pydantic import ValidationError

from jobspine.core.settings import JobSettings, get_settings, reset_settings


class TestJobSettings:
    def test_defaults(self):
        settings = JobSettings(_env_file=None)
        assert settings.instance_id == "jobspine0"
        assert settings.failed_retry_minutes == 3
        assert settings.log_format == "console"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_INSTANCE_ID", "worker-7")
        monkeypatch.setenv("JOBSPINE_FAILED_RETRY_MINUTES", "10")

        settings = JobSettings(_env_file=None)
        assert settings.instance_id == "worker-7"
        assert settings.failed_retry_minutes == 10

    def test_negative_backoff_rejected(self):
        with pytest.raises(ValidationError):
            JobSettings(_env_file=None, failed_retry_minutes=-1)

    def test_get_settings_cached(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("JOBSPINE_INSTANCE_ID", "worker-9")
        assert get_settings().instance_id == first.instance_id

        reset_settings()
        assert get_settings().instance_id == "worker-9"
