"""
Configuration management for the site crawler.
"""

import os
import threading
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict
from pathlib import Path
import json
import logging
from jsonschema import validate, ValidationError

from site_crawler.utils.errors import ConfigurationError


@dataclass
class CrawlerConfig:
    """Crawl engine settings."""
    max_workers: int = 5
    queue_timeout: float = 60.0
    connect_timeout: float = 3.0
    read_timeout: float = 30.0
    user_agent: str = "site-crawler/1.0"


@dataclass
class StateConfig:
    """Snapshot storage settings."""
    state_dir: str = "."


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: Optional[str] = None
    retention_days: int = 7


@dataclass
class SystemConfig:
    """Main system configuration."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    state: StateConfig = field(default_factory=StateConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Configuration schema for validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "crawler": {
            "type": "object",
            "properties": {
                "max_workers": {"type": "integer", "minimum": 1, "maximum": 100},
                "queue_timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 3600},
                "connect_timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 300},
                "read_timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 600},
                "user_agent": {"type": "string", "minLength": 1}
            },
            "additionalProperties": False
        },
        "state": {
            "type": "object",
            "properties": {
                "state_dir": {"type": "string", "minLength": 1}
            },
            "additionalProperties": False
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
                },
                "file": {"type": ["string", "null"]},
                "retention_days": {"type": "integer", "minimum": 1, "maximum": 3650}
            },
            "additionalProperties": False
        }
    },
    "additionalProperties": False
}

# environment variable -> (section, field, converter)
ENV_OVERRIDES = {
    "CRAWLER_MAX_WORKERS": ("crawler", "max_workers", int),
    "CRAWLER_QUEUE_TIMEOUT": ("crawler", "queue_timeout", float),
    "CRAWLER_USER_AGENT": ("crawler", "user_agent", str),
    "CRAWLER_STATE_DIR": ("state", "state_dir", str),
    "CRAWLER_LOG_LEVEL": ("logging", "level", str.upper),
    "CRAWLER_LOG_FILE": ("logging", "file", str),
}


class ConfigManager:
    """Configuration manager with schema validation and environment overrides."""

    def __init__(self, config_path: str = "config.json"):
        self.config_path = Path(config_path)
        self._config: Optional[SystemConfig] = None
        self._lock = threading.RLock()

    def validate_config(self, config_data: Dict[str, Any]) -> None:
        """Validate configuration data against schema."""
        try:
            validate(instance=config_data, schema=CONFIG_SCHEMA)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}")

    def load_config(self) -> SystemConfig:
        """Load configuration from file (if present) and environment variables."""
        with self._lock:
            if self._config is not None:
                return self._config

            if self.config_path.exists():
                self._load_from_file()
            else:
                self._config = SystemConfig()
                self._override_with_env_vars()
                logging.debug("No configuration file, using defaults and environment")

            return self._config

    def _load_from_file(self) -> None:
        """Load configuration from JSON file with validation."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read configuration {self.config_path}: {e}")

        self.validate_config(config_data)
        self._config = self._dict_to_config(config_data)
        self._override_with_env_vars()

        logging.info(f"Configuration loaded and validated from {self.config_path}")

    def _override_with_env_vars(self) -> None:
        """Override configuration with environment variables."""
        for env_name, (section, attr, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)
            except ValueError:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}")
            setattr(getattr(self._config, section), attr, value)

        # Re-check the merged result, environment values included
        self.validate_config(self.export_config())

    def _dict_to_config(self, data: Dict[str, Any]) -> SystemConfig:
        """Convert dictionary to SystemConfig object."""
        config = SystemConfig()

        if "crawler" in data:
            config.crawler = CrawlerConfig(**data["crawler"])

        if "state" in data:
            config.state = StateConfig(**data["state"])

        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        return config

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as dictionary."""
        with self._lock:
            if not self._config:
                return {}

            return {
                "crawler": asdict(self._config.crawler),
                "state": asdict(self._config.state),
                "logging": asdict(self._config.logging)
            }

    def save_config(self, config_path: Optional[str] = None) -> None:
        """Save current configuration to file."""
        with self._lock:
            if not self._config:
                raise ConfigurationError("No configuration loaded to save")

            save_path = Path(config_path) if config_path else self.config_path
            config_dict = self.export_config()

            self.validate_config(config_dict)

            with open(save_path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)

            logging.info(f"Configuration saved to {save_path}")
