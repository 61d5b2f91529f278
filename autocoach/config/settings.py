"""
Configuration management for AutoCoach.
Handles loading, validation, and access to application settings.
"""

import os
import yaml
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class YahooAPIConfig:
    """Yahoo API configuration settings."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "oob"
    request_timeout_seconds: int = 30


@dataclass
class FirebaseConfig:
    """Firebase project settings."""
    project_id: str = ""


@dataclass
class TasksConfig:
    """Cloud Tasks settings used by the weekly transaction scheduler."""
    queue_path: str = ""
    service_account_email: str = ""
    target_uri: str = ""
    dispatch_deadline_seconds: int = 300


@dataclass
class EmailConfig:
    """SendGrid settings for feedback and user emails."""
    sendgrid_api_key: str = ""
    support_address: str = "customersupport@fantasyautocoach.com"
    feedback_from_address: str = "feedback@fantasyautocoach.com"
    feedback_template_id: str = "d-f99cd8e8058f44dc83c74c523cc92840"
    user_template_id: str = "d-68da1ae2303d4400b9eabad0a034c262"
    app_url: str = "https://fantasyautocoach.com"


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    file: str = "autocoach.log"
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class APIConfig:
    """HTTP API settings."""
    host: str = "0.0.0.0"
    port: int = 8080
    allowed_origins: List[str] = field(default_factory=list)


@dataclass
class AppConfig:
    """Main application configuration."""
    yahoo_api: YahooAPIConfig
    firebase: FirebaseConfig
    tasks: TasksConfig
    logging: LoggingConfig
    api: APIConfig
    email: EmailConfig = field(default_factory=EmailConfig)
    weekly_transactions_run_at: str = "02:55"


# Environment variables that override values from the config file
ENV_OVERRIDES = {
    "FIREBASE_PROJECT_ID": ("firebase", "project_id"),
    "TASKS_QUEUE_PATH": ("tasks", "queue_path"),
    "TASKS_SERVICE_ACCOUNT_EMAIL": ("tasks", "service_account_email"),
    "TASKS_TARGET_URI": ("tasks", "target_uri"),
    "YAHOO_CLIENT_ID": ("yahoo_api", "client_id"),
    "YAHOO_CLIENT_SECRET": ("yahoo_api", "client_secret"),
    "LOG_LEVEL": ("logging", "level"),
    "SENDGRID_API_KEY": ("email", "sendgrid_api_key"),
}


def parse_allowed_origins(value: Optional[str]) -> List[str]:
    """Split a comma separated origin list, dropping blanks."""
    if not value:
        return []
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class ConfigManager:
    """Manages application configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or os.environ.get("AUTOCOACH_CONFIG", "config.yaml"))
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from the YAML file and the environment."""
        config_data: Dict[str, Any] = {}
        if self.config_path.exists():
            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file) or {}

        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config_data.setdefault(section, {})[key] = value

        api_data = dict(config_data.get('api', {}))
        origins = api_data.get('allowed_origins', [])
        if isinstance(origins, str):
            origins = parse_allowed_origins(origins)
        if os.environ.get("ALLOWED_ORIGINS"):
            origins = parse_allowed_origins(os.environ["ALLOWED_ORIGINS"])
        api_data['allowed_origins'] = origins

        logging_config = LoggingConfig(**config_data.get('logging', {}))
        if logging_config.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {logging_config.level}")

        self._config = AppConfig(
            yahoo_api=YahooAPIConfig(**config_data.get('yahoo_api', {})),
            firebase=FirebaseConfig(**config_data.get('firebase', {})),
            tasks=TasksConfig(**config_data.get('tasks', {})),
            logging=logging_config,
            api=APIConfig(**api_data),
            email=EmailConfig(**config_data.get('email', {})),
            weekly_transactions_run_at=config_data.get('weekly_transactions_run_at', "02:55"),
        )

        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def reload_config(self) -> AppConfig:
        """Reload configuration from file."""
        self._config = None
        return self.get_config()


# Global config instance
config_manager = ConfigManager()


def get_config() -> AppConfig:
    """Get the current application configuration."""
    return config_manager.get_config()
