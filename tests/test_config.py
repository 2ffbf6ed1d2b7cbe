# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Configuration Tests

Tests for configuration loading and validation.
Run with: pytest tests/test_config.py -v
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError


def test_config_loads_defaults():
    """Test configuration loads with default values."""
    from nazuna_updater.config import Config

    config = Config()

    assert config.remote.repo_url == "https://github.com/hiudyy/nazuna.git"
    assert config.remote.clone_depth == 1
    assert config.layout.staging_dir_name == "temp_nazuna"
    assert config.layout.backup_prefix == "backup_"
    assert config.install.command == ["npm", "run", "config:install"]
    assert config.install.required_tools == ["git", "npm"]
    assert config.prompt.countdown_seconds == 5


def test_config_from_yaml(tmp_path):
    """Test configuration loads from YAML file."""
    from nazuna_updater.config import load_config

    config_file = tmp_path / "updater.yaml"
    config_file.write_text("""
remote:
  repo_url: https://example.com/fork.git
  clone_depth: 3

layout:
  staging_dir_name: staging

install:
  command: [npm, ci]

prompt:
  countdown_seconds: 0

logging:
  level: DEBUG
""")

    config = load_config(str(config_file))

    assert config.remote.repo_url == "https://example.com/fork.git"
    assert config.remote.clone_depth == 3
    assert config.layout.staging_dir_name == "staging"
    assert config.install.command == ["npm", "ci"]
    assert config.prompt.countdown_seconds == 0
    assert config.logging.level == "DEBUG"


def test_config_partial_yaml(tmp_path):
    """Test configuration merges partial YAML with defaults."""
    from nazuna_updater.config import load_config

    config_file = tmp_path / "updater.yaml"
    config_file.write_text("prompt:\n  countdown_seconds: 2\n")

    config = load_config(str(config_file))

    assert config.prompt.countdown_seconds == 2
    assert config.prompt.spinner_interval == 0.1
    assert config.layout.staging_dir_name == "temp_nazuna"


def test_config_env_var(tmp_path, monkeypatch):
    """Test configuration path is read from the environment."""
    from nazuna_updater.config import CONFIG_ENV_VAR, load_config

    config_file = tmp_path / "custom.yaml"
    config_file.write_text("layout:\n  backup_prefix: bkp_\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))

    assert load_config().layout.backup_prefix == "bkp_"


def test_config_missing_file():
    """Test configuration handles missing file gracefully."""
    from nazuna_updater.config import load_config

    config = load_config("/nonexistent/updater.yaml")

    assert config.remote.clone_depth == 1


def test_config_invalid_yaml(tmp_path):
    """Test a broken config file falls back to defaults."""
    from nazuna_updater.config import load_config

    config_file = tmp_path / "updater.yaml"
    config_file.write_text("invalid: yaml: content: [")

    config = load_config(str(config_file))

    assert config.layout.staging_dir_name == "temp_nazuna"


def test_config_invalid_values_fall_back(tmp_path):
    """Test out-of-range values fall back to defaults instead of failing."""
    from nazuna_updater.config import load_config

    config_file = tmp_path / "updater.yaml"
    config_file.write_text("remote:\n  clone_depth: 0\n")

    config = load_config(str(config_file))

    assert config.remote.clone_depth == 1


def test_config_validation():
    """Test field constraints are enforced."""
    from nazuna_updater.config import PromptConfig, RemoteConfig

    with pytest.raises(ValidationError):
        RemoteConfig(clone_depth=0)
    with pytest.raises(ValidationError):
        PromptConfig(countdown_seconds=-1)


def test_setup_logging_with_file(tmp_path):
    """Test file logging creates the log directory and writes records."""
    from nazuna_updater.config import LoggingConfig, setup_logging

    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    log_file = tmp_path / "logs" / "update.log"
    try:
        setup_logging(LoggingConfig(level="DEBUG", file=log_file))
        logging.getLogger("nazuna_updater.test").info("hello from the test")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "hello from the test" in log_file.read_text()
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)


def test_logging_config_defaults():
    """Test logging configuration defaults."""
    from nazuna_updater.config import LoggingConfig

    config = LoggingConfig()

    assert config.level == "INFO"
    assert config.file is None
    assert isinstance(LoggingConfig(file="x.log").file, Path)
