"""
Property-based tests for configuration loading.

**Feature: site-crawler, Property 3: Configuration reload consistency**
"""

import pytest
import json
from pathlib import Path
from hypothesis import given, strategies as st
from hypothesis import settings, HealthCheck

# Add project root to path
import sys
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import ConfigManager, SystemConfig, CrawlerConfig
from site_crawler.utils.errors import ConfigurationError


ENV_NAMES = [
    "CRAWLER_MAX_WORKERS",
    "CRAWLER_QUEUE_TIMEOUT",
    "CRAWLER_USER_AGENT",
    "CRAWLER_STATE_DIR",
    "CRAWLER_LOG_LEVEL",
    "CRAWLER_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Make sure no crawler variables leak in from the environment."""
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


# Hypothesis strategies for generating test data
@st.composite
def crawler_config_strategy(draw):
    """Generate valid crawler configuration."""
    return {
        "max_workers": draw(st.integers(min_value=1, max_value=100)),
        "queue_timeout": draw(st.floats(min_value=0.1, max_value=3600)),
        "connect_timeout": draw(st.floats(min_value=0.1, max_value=300)),
        "read_timeout": draw(st.floats(min_value=0.1, max_value=600)),
        "user_agent": draw(st.text(min_size=1, max_size=40, alphabet=st.characters(whitelist_categories=('Lu', 'Ll', 'Nd'), whitelist_characters='/.-')))
    }


@st.composite
def system_config_strategy(draw):
    """Generate valid system configuration."""
    return {
        "crawler": draw(crawler_config_strategy()),
        "state": {
            "state_dir": draw(st.text(min_size=1, max_size=30, alphabet=st.characters(whitelist_categories=('Lu', 'Ll', 'Nd'), whitelist_characters='/_-')))
        },
        "logging": {
            "level": draw(st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])),
            "file": draw(st.one_of(st.none(), st.just("logs/crawler.log"))),
            "retention_days": draw(st.integers(min_value=1, max_value=3650))
        }
    }


class TestConfigurationProperties:
    """Property-based tests for configuration management."""

    @given(config_data=system_config_strategy())
    @settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_configuration_reload_consistency(self, config_data, tmp_path):
        """
        **Feature: site-crawler, Property 3: Configuration reload consistency**

        For any valid configuration, loading it and exporting it again gives
        back the same values, and a fresh manager reading the saved file sees
        the same configuration.
        """
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config_data), encoding="utf-8")

        manager = ConfigManager(str(config_path))
        loaded = manager.load_config()

        assert isinstance(loaded, SystemConfig)
        assert manager.export_config() == config_data

        saved_path = tmp_path / "saved.json"
        manager.save_config(str(saved_path))
        reloaded = ConfigManager(str(saved_path)).load_config()

        assert reloaded == loaded

    @given(workers=st.integers(min_value=1, max_value=100))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_env_override_wins_over_file(self, workers, tmp_path, monkeypatch):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"crawler": {"max_workers": 3}}), encoding="utf-8")
        monkeypatch.setenv("CRAWLER_MAX_WORKERS", str(workers))

        config = ConfigManager(str(config_path)).load_config()

        assert config.crawler.max_workers == workers


class TestConfigurationLoading:
    """Example-based configuration tests."""

    def test_defaults_without_file(self, tmp_path):
        config = ConfigManager(str(tmp_path / "missing.json")).load_config()

        assert config == SystemConfig()
        assert config.crawler.max_workers == 5
        assert config.crawler.queue_timeout == 60.0
        assert config.state.state_dir == "."

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"state": {"state_dir": "/var/lib/crawler"}}), encoding="utf-8")

        config = ConfigManager(str(config_path)).load_config()

        assert config.state.state_dir == "/var/lib/crawler"
        assert config.crawler == CrawlerConfig()

    def test_env_overrides_without_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CRAWLER_QUEUE_TIMEOUT", "2.5")
        monkeypatch.setenv("CRAWLER_LOG_LEVEL", "debug")
        monkeypatch.setenv("CRAWLER_STATE_DIR", str(tmp_path))

        config = ConfigManager(str(tmp_path / "missing.json")).load_config()

        assert config.crawler.queue_timeout == 2.5
        assert config.logging.level == "DEBUG"
        assert config.state.state_dir == str(tmp_path)

    @pytest.mark.parametrize("config_data", [
        {"crawler": {"max_workers": 0}},
        {"crawler": {"max_workers": 101}},
        {"crawler": {"queue_timeout": 0}},
        {"crawler": {"unknown": 1}},
        {"logging": {"level": "LOUD"}},
        {"database": {}},
    ])
    def test_invalid_file_rejected(self, tmp_path, config_data):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config_data), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager(str(config_path)).load_config()

    def test_unparseable_file_rejected(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("{broken", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager(str(config_path)).load_config()

    @pytest.mark.parametrize("name, value", [
        ("CRAWLER_MAX_WORKERS", "many"),
        ("CRAWLER_MAX_WORKERS", "500"),
        ("CRAWLER_QUEUE_TIMEOUT", "-1"),
        ("CRAWLER_LOG_LEVEL", "chatty"),
    ])
    def test_invalid_env_rejected(self, tmp_path, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError):
            ConfigManager(str(tmp_path / "missing.json")).load_config()

    def test_configuration_read_once_per_manager(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"crawler": {"max_workers": 2}}), encoding="utf-8")
        manager = ConfigManager(str(config_path))
        first = manager.load_config()

        config_path.write_text(json.dumps({"crawler": {"max_workers": 8}}), encoding="utf-8")

        assert manager.load_config() is first
        assert first.crawler.max_workers == 2
        assert not hasattr(manager, "reload_if_changed")

    def test_save_without_config_fails(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager(str(tmp_path / "config.json")).save_config()
