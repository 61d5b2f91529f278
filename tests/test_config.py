"""
Tests for configuration loading.
"""

import pytest

from autocoach.config.settings import ENV_OVERRIDES, ConfigManager, parse_allowed_origins


CONFIG_YAML = """
firebase:
  project_id: autocoach-test
tasks:
  service_account_email: tasks@autocoach-test.iam.gserviceaccount.com
logging:
  level: DEBUG
api:
  port: 9000
  allowed_origins:
    - https://app.example.com
weekly_transactions_run_at: "03:30"
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in list(ENV_OVERRIDES) + ["ALLOWED_ORIGINS", "AUTOCOACH_CONFIG"]:
        monkeypatch.delenv(name, raising=False)


class TestConfigManager:
    """Test cases for ConfigManager."""

    def test_defaults_without_file(self, tmp_path):
        """A missing config file gives the defaults."""
        config = ConfigManager(str(tmp_path / "missing.yaml")).get_config()

        assert config.logging.level == "INFO"
        assert config.api.port == 8080
        assert config.api.allowed_origins == []
        assert config.tasks.dispatch_deadline_seconds == 300
        assert config.weekly_transactions_run_at == "02:55"
        assert config.yahoo_api.request_timeout_seconds == 30
        assert config.email.sendgrid_api_key == ""
        assert config.email.support_address == "customersupport@fantasyautocoach.com"

    def test_load_from_file(self, tmp_path):
        """Values are read from the YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML)

        config = ConfigManager(str(path)).get_config()

        assert config.firebase.project_id == "autocoach-test"
        assert config.tasks.service_account_email == "tasks@autocoach-test.iam.gserviceaccount.com"
        assert config.logging.level == "DEBUG"
        assert config.api.port == 9000
        assert config.api.allowed_origins == ["https://app.example.com"]
        assert config.weekly_transactions_run_at == "03:30"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        """Environment variables win over the file."""
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML)
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "autocoach-prod")
        monkeypatch.setenv("TASKS_TARGET_URI", "https://api.example.com/tasks/weekly-transactions")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, https://b.example.com")
        monkeypatch.setenv("SENDGRID_API_KEY", "SG.test-key")

        config = ConfigManager(str(path)).get_config()

        assert config.firebase.project_id == "autocoach-prod"
        assert config.tasks.target_uri == "https://api.example.com/tasks/weekly-transactions"
        assert config.api.allowed_origins == ["https://a.example.com", "https://b.example.com"]
        assert config.email.sendgrid_api_key == "SG.test-key"

    def test_invalid_log_level(self, tmp_path, monkeypatch):
        """Unknown log levels are rejected."""
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValueError, match="Invalid log level"):
            ConfigManager(str(tmp_path / "missing.yaml")).load_config()

    def test_reload(self, tmp_path):
        """Reloading picks up file changes."""
        path = tmp_path / "config.yaml"
        path.write_text("api:\n  port: 9000\n")
        manager = ConfigManager(str(path))
        assert manager.get_config().api.port == 9000

        path.write_text("api:\n  port: 9001\n")
        assert manager.reload_config().api.port == 9001


class TestParseAllowedOrigins:
    """Test cases for the origin list parser."""

    def test_blank_values(self):
        """Empty input gives no origins."""
        assert parse_allowed_origins(None) == []
        assert parse_allowed_origins("") == []
        assert parse_allowed_origins(" , ") == []

    def test_trims_entries(self):
        """Entries are trimmed."""
        assert parse_allowed_origins("https://a.example.com ,https://b.example.com") == [
            "https://a.example.com",
            "https://b.example.com",
        ]
